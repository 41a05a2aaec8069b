"""
Import wizard session.

Holds the state of one interactive import and enforces the step order:

    upload -> mapping -> validation -> options -> review -> progress

Each forward move has a guard; a refused move raises
InvalidStepTransitionError (or the guard's own error) and leaves the
session where it was. Nothing here touches the store until confirm().
"""

import threading
from enum import Enum
from typing import Any, Callable, Optional
import structlog

from models.bulk_import import ColumnMapping, FileKind, ImportOptions, ImportResult, TargetField
from exceptions import (
    AppError,
    ImportAbortedError,
    ImportInProgressError,
    InvalidStepTransitionError,
    ValidationError,
)
from parsers.import_file_parser import ParsedTable, detect_file_kind, parse_import_file
from services.column_mapping import ensure_complete, is_complete, seed_mapping, shared_headers
from services.row_validator import ValidationReport, validate_rows

logger = structlog.get_logger(__name__)


class WizardStep(str, Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    VALIDATION = "validation"
    OPTIONS = "options"
    REVIEW = "review"
    PROGRESS = "progress"


class ProgressStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


STEP_ORDER = list(WizardStep)

PROGRESS_TICK = 10
PROGRESS_CEILING = 90

# rows, mapping, options -> result
ImportRunner = Callable[[list[dict[str, Any]], ColumnMapping, ImportOptions], ImportResult]


def service_runner(service, actor_id: str, request_metadata: Optional[dict[str, str]] = None) -> ImportRunner:
    """Bind a BulkImportService to an actor for use as a wizard runner."""
    def run(rows, mapping, options):
        return service.import_items(
            rows,
            mapping,
            options,
            actor_id=actor_id,
            request_metadata=request_metadata,
        )
    return run


class ImportWizardSession:
    """
    One user's pass through the import wizard.

    The runner performs the actual import; it is called synchronously
    from confirm(). cancel() and close() may be called from another
    thread while it runs.
    """

    def __init__(self, runner: ImportRunner):
        self._runner = runner
        self._lock = threading.Lock()
        self._generation = 0
        self._reset()

    def _reset(self) -> None:
        self._generation += 1
        self.step = WizardStep.UPLOAD
        self.file_name: Optional[str] = None
        self.table: Optional[ParsedTable] = None
        self.mapping = ColumnMapping()
        self.auto_detected = False
        self.validation: Optional[ValidationReport] = None
        self.options = ImportOptions()
        self.status = ProgressStatus.IDLE
        self.progress_estimate = 0
        self.result: Optional[ImportResult] = None
        self.error: Optional[str] = None

    # ===================
    # PROPERTIES
    # ===================

    @property
    def is_processing(self) -> bool:
        return self.status == ProgressStatus.PROCESSING

    @property
    def can_go_back(self) -> bool:
        return self.step not in (WizardStep.UPLOAD, WizardStep.PROGRESS)

    @property
    def mapping_complete(self) -> bool:
        return is_complete(self.mapping)

    # ===================
    # FORWARD STEPS
    # ===================

    def upload(self, content: bytes, file_name: str, kind: Optional[FileKind] = None) -> ParsedTable:
        """
        Parse an upload and move to mapping.

        A new upload replaces the previous table and mapping; column
        auto-detection runs once per uploaded table.

        Raises:
            InvalidFileFormatError, FileTooLargeError, EmptyFileError,
            RowLimitExceededError, FileParseError: Session stays on upload
        """
        self._require_step(WizardStep.UPLOAD, WizardStep.MAPPING)

        table = parse_import_file(content, kind or detect_file_kind(file_name))

        self.table = table
        self.file_name = file_name
        self.mapping = ColumnMapping()
        self.auto_detected = False
        self.validation = None
        self._auto_detect()
        self.step = WizardStep.MAPPING

        logger.info(
            "import_wizard_uploaded",
            file_name=file_name,
            rows=table.total_rows,
            mapping_complete=self.mapping_complete,
        )
        return table

    def set_mapping(self, target: TargetField, header: Optional[str]) -> ColumnMapping:
        """Bind (or with None, unbind) a target field. Manual choices are never overridden."""
        self._require_step(WizardStep.MAPPING, WizardStep.MAPPING)
        if header is not None and header not in self.table.headers:
            raise ValidationError(
                message=f"Unknown column: {header}",
                code="IMPORT_UNKNOWN_COLUMN",
                details={"header": header, "headers": list(self.table.headers)},
            )
        self.mapping = self.mapping.bind(target, header)
        return self.mapping

    def continue_to_validation(self) -> ValidationReport:
        """
        Validate every row with the current mapping.

        Raises:
            MappingIncompleteError: A required field is unbound
        """
        self._require_step(WizardStep.MAPPING, WizardStep.VALIDATION)
        ensure_complete(self.mapping)

        self.validation = validate_rows(self.table.rows, self.mapping)
        self.step = WizardStep.VALIDATION
        return self.validation

    def continue_to_options(self) -> None:
        self._require_step(WizardStep.VALIDATION, WizardStep.OPTIONS)
        self.step = WizardStep.OPTIONS

    def set_options(self, options: ImportOptions) -> None:
        self._require_step(WizardStep.OPTIONS, WizardStep.OPTIONS)
        self.options = options

    def continue_to_review(self, options: Optional[ImportOptions] = None) -> dict:
        self._require_step(WizardStep.OPTIONS, WizardStep.REVIEW)
        if options is not None:
            self.options = options
        self.step = WizardStep.REVIEW
        return self.summary()

    def summary(self) -> dict:
        """What the review step shows before confirming."""
        report = self.validation
        return {
            "file_name": self.file_name,
            "total_rows": self.table.total_rows if self.table else 0,
            "valid_rows": report.valid_count if report else 0,
            "invalid_rows": report.invalid_count if report else 0,
            "duplicate_handling": self.options.duplicate_handling.value,
            "default_destination": (
                self.options.default_destination.value
                if self.options.default_destination else None
            ),
            "default_category": self.options.default_category,
            "shared_headers": {
                header: [target.value for target in targets]
                for header, targets in shared_headers(self.mapping).items()
            },
        }

    def confirm(self) -> Optional[ImportResult]:
        """
        Run the import and move to progress.

        Returns the ImportResult, or None when the run failed or was
        cancelled (see status and error).

        Raises:
            ImportInProgressError: A run is already outstanding
        """
        with self._lock:
            if self.is_processing:
                raise ImportInProgressError()
            self._require_step(WizardStep.REVIEW, WizardStep.PROGRESS)
            self.step = WizardStep.PROGRESS
            self.status = ProgressStatus.PROCESSING
            self.progress_estimate = 0
            self.result = None
            self.error = None
            generation = self._generation
            rows = list(self.table.rows)
            mapping = self.mapping
            options = self.options

        logger.info("import_wizard_confirmed", file_name=self.file_name, rows=len(rows))

        try:
            result = self._runner(rows, mapping, options)
        except Exception as e:
            message = e.message if isinstance(e, AppError) else str(e)
            logger.error("import_wizard_run_failed", error=message, error_type=type(e).__name__)
            with self._lock:
                if generation == self._generation and self.is_processing:
                    self.status = ProgressStatus.ERROR
                    self.error = message or "Import failed"
            return None

        with self._lock:
            if generation != self._generation or not self.is_processing:
                # Closed or cancelled meanwhile; the store already has these changes.
                logger.warning(
                    "import_wizard_result_discarded",
                    succeeded=result.success_count,
                    failed=result.failed_count,
                )
                return None
            self.result = result
            self.status = ProgressStatus.COMPLETED
            self.progress_estimate = 100

        return result

    def tick_progress(self) -> int:
        """Advance the progress estimate while a run is outstanding."""
        if self.is_processing:
            self.progress_estimate = min(self.progress_estimate + PROGRESS_TICK, PROGRESS_CEILING)
        return self.progress_estimate

    # ===================
    # BACK / CANCEL / CLOSE
    # ===================

    def back(self) -> WizardStep:
        if not self.can_go_back:
            target = STEP_ORDER[max(STEP_ORDER.index(self.step) - 1, 0)]
            raise InvalidStepTransitionError(
                self.step.value,
                target.value,
                "Back is not available from this step",
            )
        self.step = STEP_ORDER[STEP_ORDER.index(self.step) - 1]
        return self.step

    def cancel(self) -> bool:
        """
        Abandon an outstanding run.

        Items the runner already applied stay applied. Returns False
        when nothing was running.
        """
        with self._lock:
            if not self.is_processing:
                return False
            self.status = ProgressStatus.ERROR
            self.error = ImportAbortedError().message
        logger.warning("import_wizard_cancelled", file_name=self.file_name)
        return True

    def close(self, confirmed: bool = False) -> bool:
        """
        Discard the session.

        While a run is outstanding, closing needs confirmed=True;
        otherwise nothing changes and False is returned.
        """
        with self._lock:
            if self.is_processing and not confirmed:
                return False
            if self.is_processing:
                logger.warning("import_wizard_closed_while_processing", file_name=self.file_name)
            self._reset()
        return True

    # ===================
    # HELPERS
    # ===================

    def _auto_detect(self) -> None:
        if self.auto_detected:
            return
        self.mapping = seed_mapping(self.table.headers, self.mapping)
        self.auto_detected = True

    def _require_step(self, expected: WizardStep, target: WizardStep) -> None:
        if self.step != expected:
            raise InvalidStepTransitionError(
                self.step.value,
                target.value,
                f"Expected to be on {expected.value}",
            )
