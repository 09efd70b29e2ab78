from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime

from app.clients.algolia import AlgoliaListingSource
from app.clients.base import ListingSource, UpstreamListing
from app.clients.geocoding import GoogleGeocodingClient
from app.clients.text_generation import AzureOpenAIClient
from app.core.config import Settings, settings
from app.core.errors import DuplicateJobError, PipelineCancelled
from app.db.database import SessionLocal
from app.schemas.progress import CompleteEvent, ErrorEvent, StatusEvent
from app.services.geocode_resolver import GeocodeResolver
from app.services.location_parser import LocationParser
from app.services.progress import ProgressHub, hub
from app.services.reconciliation import reconcile
from app.services.zipcodes import SqlZipcodeLookup, ZipcodeTable
from app.storage.base import EnrichedJob, PipelineStorage
from app.storage.sql import SqlStorage

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class PipelineStep:
    INITIALIZING = "Initializing"
    FETCHING = "Fetching jobs from source"
    RECONCILING = "Comparing with stored jobs"
    DELETING = "Removing obsolete jobs"
    ENRICHING = "Processing new jobs"
    PERSISTING = "Saving processed jobs"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(frozen=True)
class ExecutionResult:
    execution_id: int
    total_jobs: int
    processed_jobs: int
    new_jobs: int
    removed_jobs: int


def _coordinate(value: str) -> float | None:
    try:
        return float(value) if value else None
    except ValueError:
        return None


class PipelineOrchestrator:
    """Runs fetch, reconcile, delete, enrich and persist for one batch.

    Only the calling thread touches storage and the progress hub; worker
    threads do the network-bound enrichment of single listings.
    """

    def __init__(
        self,
        storage: PipelineStorage,
        source: ListingSource,
        parser: LocationParser,
        resolver: GeocodeResolver,
        progress: ProgressHub | None = None,
        concurrency: int = 4,
    ):
        self.storage = storage
        self.source = source
        self.parser = parser
        self.resolver = resolver
        self.progress = progress or ProgressHub()
        self.concurrency = max(1, concurrency)
        self.last_enriched: list[EnrichedJob] = []

    def run(
        self,
        batch_size: int,
        cancel_event: threading.Event | None = None,
        execution_id: int | None = None,
    ) -> ExecutionResult:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        cancel_event = cancel_event or threading.Event()

        if execution_id is None:
            execution_id = self.storage.create_execution(current_step=PipelineStep.INITIALIZING).id

        try:
            self._step(execution_id, PipelineStep.INITIALIZING, 0)
            self._log(execution_id, f"Pipeline started with batch size {batch_size}")
            return self._execute(execution_id, batch_size, cancel_event)
        except Exception as exc:
            self._fail(execution_id, exc)
            raise

    def enrich_listing(self, listing: UpstreamListing) -> EnrichedJob:
        location = self.parser.parse(listing)
        geo = self.resolver.resolve(location)
        return EnrichedJob(
            external_id=listing.external_id,
            source_url=listing.source_url,
            title=listing.title,
            city=location.city,
            state=location.state,
            country=location.country,
            postal_code=geo.postal_code,
            latitude=_coordinate(geo.latitude),
            longitude=_coordinate(geo.longitude),
            description=listing.business_area,
            company_name=listing.company_name,
        )

    def _execute(self, execution_id: int, batch_size: int, cancel_event: threading.Event) -> ExecutionResult:
        self._step(execution_id, PipelineStep.FETCHING, 10)
        listings = self.source.fetch_all()
        batch = listings[:batch_size]
        total_jobs = len(batch)
        self._step(execution_id, PipelineStep.FETCHING, 10, total_jobs=total_jobs)
        self._log(execution_id, f"Fetched {len(listings)} jobs from source, processing {total_jobs}")
        self._check_cancel(cancel_event)

        self._step(execution_id, PipelineStep.RECONCILING, 20, total_jobs=total_jobs)
        plan = reconcile(batch, self.storage.list_jobs())
        self._log(
            execution_id,
            f"Found {len(plan.jobs_to_enrich)} new jobs to process and {len(plan.jobs_to_delete)} jobs to remove",
        )

        self._step(execution_id, PipelineStep.DELETING, 30, total_jobs=total_jobs)
        for job in plan.jobs_to_delete:
            self._check_cancel(cancel_event)
            try:
                self.storage.delete_job(job.external_id)
            except Exception as exc:  # noqa: BLE001
                self._log(execution_id, f"Failed to delete job {job.external_id}: {exc}", "warning")
        removed_jobs = len(plan.jobs_to_delete)
        self.storage.update_execution(execution_id, removed_jobs=removed_jobs)

        enriched = self._enrich(execution_id, plan.jobs_to_enrich, total_jobs, cancel_event)
        processed_jobs = len(plan.jobs_to_enrich)
        self.last_enriched = enriched

        self._step(execution_id, PipelineStep.PERSISTING, 85, total_jobs=total_jobs, processed_jobs=processed_jobs)
        new_jobs = 0
        for job in enriched:
            self._check_cancel(cancel_event)
            try:
                self.storage.insert_job(job)
            except DuplicateJobError:
                logger.debug("job %s already stored, skipping", job.external_id)
                continue
            except Exception as exc:  # noqa: BLE001
                self._log(execution_id, f"Failed to save job {job.external_id}: {exc}", "warning")
                continue
            new_jobs += 1

        self.storage.update_execution(
            execution_id,
            status="completed",
            end_time=datetime.utcnow(),
            current_step=PipelineStep.COMPLETED,
            total_jobs=total_jobs,
            processed_jobs=processed_jobs,
            new_jobs=new_jobs,
            removed_jobs=removed_jobs,
        )
        message = f"Pipeline completed: {new_jobs} new jobs added, {removed_jobs} jobs removed"
        self._publish(
            StatusEvent(
                step=PipelineStep.COMPLETED, progress=100, total_jobs=total_jobs, processed_jobs=processed_jobs
            )
        )
        self._publish(
            CompleteEvent(
                total_jobs=total_jobs,
                processed_jobs=processed_jobs,
                new_jobs=new_jobs,
                removed_jobs=removed_jobs,
                message=message,
            )
        )
        self._log(execution_id, message, "success")
        return ExecutionResult(
            execution_id=execution_id,
            total_jobs=total_jobs,
            processed_jobs=processed_jobs,
            new_jobs=new_jobs,
            removed_jobs=removed_jobs,
        )

    def _enrich(
        self,
        execution_id: int,
        listings: list[UpstreamListing],
        total_jobs: int,
        cancel_event: threading.Event,
    ) -> list[EnrichedJob]:
        total = len(listings)
        self._step(execution_id, PipelineStep.ENRICHING, 40, total_jobs=total_jobs, processed_jobs=0)
        if not total:
            return []

        # keyed by source position so persistence order does not depend on completion order
        results: dict[int, EnrichedJob] = {}
        processed = 0
        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="enrich") as pool:
            futures = {pool.submit(self.enrich_listing, listing): i for i, listing in enumerate(listings)}
            try:
                for future in as_completed(futures):
                    index = futures[future]
                    try:
                        results[index] = future.result()
                    except Exception as exc:  # noqa: BLE001
                        self._log(execution_id, f"Error processing job {listings[index].external_id}: {exc}", "error")
                    processed += 1
                    self._step(
                        execution_id,
                        f"Processing job {processed}/{total}",
                        40 + int(processed / total * 40),
                        total_jobs=total_jobs,
                        processed_jobs=processed,
                    )
                    self._check_cancel(cancel_event)
            except BaseException:
                for pending in futures:
                    pending.cancel()
                raise

        return [results[i] for i in sorted(results)]

    def _step(self, execution_id: int, step: str, progress: int, **counters) -> None:
        self.storage.update_execution(execution_id, current_step=step, **counters)
        self._publish(StatusEvent(step=step, progress=progress, **counters))

    def _publish(self, event) -> None:
        try:
            self.progress.publish(event)
        except Exception as exc:  # noqa: BLE001
            logger.warning("progress publish failed: %s", exc)

    def _log(self, execution_id: int | None, message: str, level: str = "info") -> None:
        logger.log(_LOG_LEVELS.get(level, logging.INFO), message)
        try:
            self.storage.append_log(message, level=level, execution_id=execution_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("failed to write activity log: %s", exc)

    @staticmethod
    def _check_cancel(cancel_event: threading.Event) -> None:
        if cancel_event.is_set():
            raise PipelineCancelled()

    def _fail(self, execution_id: int, exc: Exception) -> None:
        message = str(exc) or exc.__class__.__name__
        try:
            self.storage.update_execution(
                execution_id,
                status="failed",
                end_time=datetime.utcnow(),
                current_step=PipelineStep.FAILED,
                error_message=message,
            )
        except Exception as update_exc:  # noqa: BLE001
            logger.error("could not mark execution %s as failed: %s", execution_id, update_exc)
        self._publish(ErrorEvent(message=message))
        self._log(execution_id, f"Pipeline failed: {message}", "error")


def build_zipcode_table(path: str) -> ZipcodeTable | None:
    try:
        return ZipcodeTable.from_csv(path)
    except OSError as exc:
        logger.warning("in-memory zipcode table unavailable: %s", exc)
        return None


def build_orchestrator(
    storage: PipelineStorage | None = None,
    progress: ProgressHub | None = None,
    cfg: Settings = settings,
) -> PipelineOrchestrator:
    timeout = cfg.http_timeout_seconds
    source = AlgoliaListingSource(
        application_id=cfg.algolia_application_id,
        api_key=cfg.algolia_api_key,
        index_name=cfg.algolia_index_name,
        filters=cfg.algolia_filters,
        page_size=cfg.algolia_page_size,
        timeout=timeout,
    )
    parser = LocationParser(
        AzureOpenAIClient(
            endpoint=cfg.azure_openai_endpoint,
            deployment=cfg.azure_openai_deployment,
            api_key=cfg.azure_openai_key,
            api_version=cfg.azure_openai_api_version,
            timeout=timeout,
        )
    )
    resolver = GeocodeResolver(
        GoogleGeocodingClient(cfg.google_geocoding_api_key, timeout=timeout),
        zipcode_lookup=SqlZipcodeLookup(SessionLocal),
        zipcode_table=build_zipcode_table(cfg.zipcode_data_path),
    )
    return PipelineOrchestrator(
        storage=storage or SqlStorage(SessionLocal),
        source=source,
        parser=parser,
        resolver=resolver,
        progress=progress or hub,
        concurrency=cfg.enrichment_concurrency,
    )
