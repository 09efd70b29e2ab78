from __future__ import annotations
from app.models.activity_log import ActivityLog
from app.models.job_posting import JobPosting
from app.models.pipeline_execution import PipelineExecution
from app.models.setting import Setting
from app.models.zipcode import UsZipcode

__all__ = ["ActivityLog", "JobPosting", "PipelineExecution", "Setting", "UsZipcode"]
