"""Metered generation service.

Orchestrates a single metered call end-to-end:

1. validate input (nothing is metered for malformed requests)
2. resolve the owner's grant and run the quota pre-check
3. invoke the generator (buffered or streamed)
4. write exactly one usage record for the attempt
5. push best-effort notifications

Quota denials short-circuit before the generator is invoked. A ledger write
failure after a successful generation is logged and never overturns the
result returned to the caller.
"""

import time
from contextlib import aclosing, nullcontext
from typing import AsyncIterator, Optional
from uuid import UUID

import anyio
from sqlalchemy.ext.asyncio import AsyncSession

from aiportal.core.exceptions import BadRequestError
from aiportal.core.logging import ContextualLogger, logger
from aiportal.domains.catalog.exceptions import ServiceUnavailableError
from aiportal.domains.catalog.protocols import ServiceCatalogProtocol
from aiportal.domains.catalog.types import ServiceRef
from aiportal.domains.entitlements.exceptions import NoActiveGrantError
from aiportal.domains.entitlements.protocols import EntitlementResolverProtocol
from aiportal.domains.generation.events import ChunkEvent, DoneEvent, ErrorEvent, StreamEvent
from aiportal.domains.generation.exceptions import (
    GenerationValidationError,
    GeneratorFailureError,
)
from aiportal.domains.generation.locks import OwnerLocks
from aiportal.domains.generation.protocols import (
    MeteredGenerationServiceProtocol,
    TextGeneratorProtocol,
)
from aiportal.domains.generation.types import (
    CONTENT_TYPE_OPTIONS,
    LENGTH_OPTIONS,
    REQUEST_TYPE,
    TONE_OPTIONS,
    GenerationRequest,
    validate_request,
)
from aiportal.domains.notifications.protocols import NotificationEmitterProtocol
from aiportal.domains.notifications.types import (
    NotificationKind,
    WarningStage,
    should_warn,
    usage_warning_payload,
)
from aiportal.domains.usage.exceptions import (
    LedgerWriteError,
    QuotaDeniedError,
    UsageLimitReachedError,
)
from aiportal.domains.usage.protocols import QuotaEnforcerProtocol, UsageLedgerProtocol
from aiportal.domains.usage.types import (
    DEFAULT_FAILURE_CODE,
    LENGTH_ESTIMATES,
    ConsumptionField,
    LengthClass,
    LimitField,
    QuotaCheck,
    RequestSnapshot,
    ServiceType,
    UsageSnapshot,
    count_words,
)
from aiportal.schemas.generation import (
    GenerationOptionsResponse,
    GenerationResponse,
    OptionSchema,
)
from aiportal.schemas.usage import (
    HistoryResponse,
    MonthUsageSchema,
    PlanRefSchema,
    UsageRecordRead,
    UsageSnapshotSchema,
    UsageSummaryResponse,
)

TEXT_SERVICE = ServiceType.AI_TEXT_WRITER
TEXT_LIMIT = LimitField.WORDS_PER_DAY
MAX_PAGE_SIZE = 100


class MeteredGenerationService(MeteredGenerationServiceProtocol):
    """Quota-gated text generation."""

    def __init__(
        self,
        resolver: EntitlementResolverProtocol,
        enforcer: QuotaEnforcerProtocol,
        ledger: UsageLedgerProtocol,
        catalog: ServiceCatalogProtocol,
        generator: TextGeneratorProtocol,
        notifier: NotificationEmitterProtocol,
        locks: Optional[OwnerLocks] = None,
    ) -> None:
        """Initialize with all collaborators.

        Args:
            locks: Per-owner serialization of check-generate-write. ``None``
                lets concurrent requests from one owner race the quota check.
        """
        self._resolver = resolver
        self._enforcer = enforcer
        self._ledger = ledger
        self._catalog = catalog
        self._generator = generator
        self._notifier = notifier
        self._locks = locks

    # ------------------------------------------------------------------
    # Buffered mode
    # ------------------------------------------------------------------

    async def generate(
        self,
        db: AsyncSession,
        owner_id: UUID,
        prompt: Optional[str],
        content_type: Optional[str],
        *,
        tone: Optional[str] = None,
        length: Optional[str] = None,
        language: Optional[str] = None,
    ) -> GenerationResponse:
        """Run one buffered metered generation.

        Raises:
            GenerationValidationError: malformed input.
            ServiceUnavailableError: the text writer is not active.
            NoActiveGrantError: no grant under the strict policy.
            UsageLimitReachedError / EstimatedOverageError: quota denial.
            GeneratorFailureError: the generator failed; a failure record was written.
        """
        request = self._validate(prompt, content_type, tone, length, language)
        service = await self._catalog.get_active(db, TEXT_SERVICE)
        log = logger.with_prefix("[MeteredGeneration] ").with_context(
            owner_id=owner_id, service=service.service_type.value
        )

        async with self._guard(owner_id, service.id):
            check = await self._pre_check(db, owner_id, service, request, log)
            snapshot = self._snapshot(request)
            started = time.monotonic()

            try:
                result = await self._generator.generate(
                    request.prompt, request.content_type, request.options
                )
            except Exception as e:
                code = getattr(e, "code", None) or DEFAULT_FAILURE_CODE
                log.error(f"Generator raised: {e}", exc_info=True)
                await self._record_failure(
                    db, owner_id, service, snapshot, str(e), code, None, _elapsed_ms(started), log
                )
                raise GeneratorFailureError(str(e), code) from e

            if not result.success:
                message = result.error or "Generation failed"
                log.warning(f"Generator reported failure: {message}")
                await self._record_failure(
                    db,
                    owner_id,
                    service,
                    snapshot,
                    message,
                    result.error_code,
                    result.model_id,
                    result.duration_ms,
                    log,
                )
                raise GeneratorFailureError(message, result.error_code)

            await self._record_success(
                db,
                owner_id,
                service,
                snapshot,
                output=result.content,
                words=result.words_generated,
                truncated=False,
                model_id=result.model_id,
                duration_ms=result.duration_ms,
                check=check,
                log=log,
            )

        after = UsageSnapshot(check.used_today + result.words_generated, check.max_allowed)
        return GenerationResponse(
            generated_text=result.content,
            words_generated=result.words_generated,
            content_type=request.content_type.value,
            model_id=result.model_id,
            duration_ms=result.duration_ms,
            usage=UsageSnapshotSchema(**after.to_dict()),
        )

    # ------------------------------------------------------------------
    # Streaming mode
    # ------------------------------------------------------------------

    def generate_stream(
        self,
        db: AsyncSession,
        owner_id: UUID,
        prompt: Optional[str],
        content_type: Optional[str],
        *,
        tone: Optional[str] = None,
        length: Optional[str] = None,
        language: Optional[str] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Validate eagerly, then return the event stream.

        Raises:
            GenerationValidationError: malformed input, before any event is produced.
        """
        request = self._validate(prompt, content_type, tone, length, language)
        return self._stream(db, owner_id, request)

    async def _stream(
        self, db: AsyncSession, owner_id: UUID, request: GenerationRequest
    ) -> AsyncIterator[StreamEvent]:
        log = logger.with_prefix("[MeteredGeneration] ").with_context(
            owner_id=owner_id, service=TEXT_SERVICE.value
        )
        try:
            service = await self._catalog.get_active(db, TEXT_SERVICE)
        except ServiceUnavailableError as e:
            yield ErrorEvent(error=e.message)
            return

        async with self._guard(owner_id, service.id):
            try:
                check = await self._pre_check(db, owner_id, service, request, log)
            except QuotaDeniedError as denial:
                yield ErrorEvent.from_denial(denial)
                return
            except NoActiveGrantError as e:
                yield ErrorEvent(error=e.message)
                return

            snapshot = self._snapshot(request)
            started = time.monotonic()
            model_id = self._generator.model_id
            parts: list[str] = []
            failure: Optional[Exception] = None
            completed = False
            recorded_words = 0

            try:
                async with aclosing(
                    self._generator.stream(request.prompt, request.content_type, request.options)
                ) as fragments:
                    async for fragment in fragments:
                        if not fragment:
                            continue
                        parts.append(fragment)
                        yield ChunkEvent(chunk=fragment)
                completed = True
            except Exception as e:
                failure = e
                log.error(f"Stream failed mid-flight: {e}", exc_info=True)
            finally:
                if not completed and failure is None:
                    log.info("Stream closed by client, metering partial text")
                # Runs on disconnect too. The write must finish while the owner lock is
                # held and before the caller closes the session.
                with anyio.CancelScope(shield=True):
                    recorded_words = await self._meter_stream(
                        db,
                        owner_id,
                        service,
                        snapshot,
                        "".join(parts),
                        truncated=not completed,
                        failure=failure,
                        model_id=model_id,
                        duration_ms=_elapsed_ms(started),
                        check=check,
                        log=log,
                    )

        usage = UsageSnapshotSchema(
            **UsageSnapshot(check.used_today + recorded_words, check.max_allowed).to_dict()
        )
        if failure is not None:
            yield ErrorEvent(
                error=f"Generation failed: {failure}",
                code=getattr(failure, "code", None) or DEFAULT_FAILURE_CODE,
                usage=usage,
            )
            return

        full_text = "".join(parts)
        yield DoneEvent(
            full_text=full_text,
            words_generated=count_words(full_text),
            content_type=request.content_type.value,
            usage=usage,
        )

    async def _meter_stream(
        self,
        db: AsyncSession,
        owner_id: UUID,
        service: ServiceRef,
        snapshot: RequestSnapshot,
        text: str,
        *,
        truncated: bool,
        failure: Optional[Exception],
        model_id: Optional[str],
        duration_ms: int,
        check: QuotaCheck,
        log: ContextualLogger,
    ) -> int:
        """Record a finished or interrupted stream. Returns the words metered."""
        words = count_words(text)
        if words:
            await self._record_success(
                db,
                owner_id,
                service,
                snapshot,
                output=text,
                words=words,
                truncated=truncated,
                model_id=model_id,
                duration_ms=duration_ms,
                check=check,
                log=log,
            )
            return words

        if failure is not None:
            await self._record_failure(
                db,
                owner_id,
                service,
                snapshot,
                str(failure),
                getattr(failure, "code", None),
                model_id,
                duration_ms,
                log,
            )
        else:
            log.info("Stream produced no text, nothing metered")
        return 0

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def get_usage_summary(self, db: AsyncSession, owner_id: UUID) -> UsageSummaryResponse:
        """Today's usage against the resolved cap, plus month-to-date totals."""
        service = await self._catalog.get_active(db, TEXT_SERVICE)
        grant = await self._resolver.require_grant(db, owner_id)
        limit = self._enforcer.resolve_cap(grant, service.service_type, TEXT_LIMIT)

        used = await self._ledger.used_today(
            db, owner_id=owner_id, service_id=service.id, field=ConsumptionField.WORDS
        )
        month = await self._ledger.month_usage(
            db, owner_id=owner_id, service_id=service.id, field=ConsumptionField.WORDS
        )
        return UsageSummaryResponse(
            service=service.service_type.value,
            today=UsageSnapshotSchema(**UsageSnapshot(used, limit).to_dict()),
            month=MonthUsageSchema(used=month.used, requests=month.requests),
            plan=PlanRefSchema(name=grant.plan_name, source=grant.source.value),
        )

    async def get_history(
        self, db: AsyncSession, owner_id: UUID, page: int = 1, page_size: int = 10
    ) -> HistoryResponse:
        """Successful generations, newest first."""
        errors = []
        if page < 1:
            errors.append("Page must be a positive integer")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            errors.append(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        if errors:
            raise BadRequestError("Invalid pagination", errors=errors)

        service = await self._catalog.get_active(db, TEXT_SERVICE)
        history = await self._ledger.history(
            db, owner_id=owner_id, service_id=service.id, page=page, page_size=page_size
        )
        return HistoryResponse(
            records=[UsageRecordRead.model_validate(r) for r in history.records],
            total=history.total,
            page=history.page,
            page_size=history.page_size,
            pages=history.pages,
        )

    def get_options(self) -> GenerationOptionsResponse:
        """Selectable content types, tones and lengths."""
        return GenerationOptionsResponse(
            content_types=[OptionSchema(**o) for o in CONTENT_TYPE_OPTIONS],
            tones=[OptionSchema(**o) for o in TONE_OPTIONS],
            lengths=[
                OptionSchema(**o, estimated_words=LENGTH_ESTIMATES[LengthClass(o["value"])])
                for o in LENGTH_OPTIONS
            ],
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(
        prompt: Optional[str],
        content_type: Optional[str],
        tone: Optional[str],
        length: Optional[str],
        language: Optional[str],
    ) -> GenerationRequest:
        request, errors = validate_request(prompt, content_type, tone, length, language)
        if request is None:
            raise GenerationValidationError(errors)
        return request

    def _guard(self, owner_id: UUID, service_id: UUID):
        if self._locks is None:
            return nullcontext()
        return self._locks.hold(owner_id, service_id)

    @staticmethod
    def _snapshot(request: GenerationRequest) -> RequestSnapshot:
        return RequestSnapshot(
            request_type=REQUEST_TYPE,
            input=request.prompt,
            parameters={"content_type": request.content_type.value, **request.options.to_dict()},
        )

    async def _pre_check(
        self,
        db: AsyncSession,
        owner_id: UUID,
        service: ServiceRef,
        request: GenerationRequest,
        log: ContextualLogger,
    ) -> QuotaCheck:
        """Resolve the grant, check quota, notify, and raise on denial."""
        grant = await self._resolver.require_grant(db, owner_id)
        check = await self._enforcer.check_and_estimate(
            db, grant, service, TEXT_LIMIT, request.options.length
        )

        try:
            check.raise_for_denial()
        except QuotaDeniedError as denial:
            hard = isinstance(denial, UsageLimitReachedError)
            log.info(
                f"Denied ({check.decision.value}): "
                f"used={check.used_today} limit={check.max_allowed} "
                f"estimate={check.estimated_cost}"
            )
            payload = {
                "service": service.service_type.value,
                "message": denial.message,
                "usage": denial.usage(),
            }
            if not hard:
                payload["estimated_words"] = check.estimated_cost
            await self._notifier.notify(
                owner_id,
                NotificationKind.USAGE_LIMIT_EXCEEDED if hard else NotificationKind.USAGE_LIMIT_WARNING,
                payload,
            )
            raise

        if check.warning:
            await self._notifier.notify(
                owner_id,
                NotificationKind.USAGE_WARNING,
                usage_warning_payload(
                    check.snapshot, service.service_type.value, WarningStage.PRE_CHECK
                ),
            )

        await self._notifier.notify(
            owner_id,
            NotificationKind.GENERATION_STARTED,
            {
                "service": service.service_type.value,
                "content_type": request.content_type.value,
                "estimated_words": check.estimated_cost,
            },
        )
        return check

    async def _record_success(
        self,
        db: AsyncSession,
        owner_id: UUID,
        service: ServiceRef,
        snapshot: RequestSnapshot,
        *,
        output: str,
        words: int,
        truncated: bool,
        model_id: Optional[str],
        duration_ms: Optional[int],
        check: QuotaCheck,
        log: ContextualLogger,
    ) -> None:
        """Write the success record, update stats and notify. Never raises on ledger failure."""
        written = True
        try:
            await self._ledger.record_success(
                db,
                owner_id=owner_id,
                service_id=service.id,
                request=snapshot,
                output=output,
                words_generated=words,
                truncated=truncated,
                model_id=model_id,
                duration_ms=duration_ms,
            )
        except LedgerWriteError as e:
            written = False
            log.error(f"Usage not recorded after success: {e}")

        await self._catalog.record_attempt(
            db, service.id, success=True, consumption=words, duration_ms=duration_ms
        )

        after = UsageSnapshot(check.used_today + words, check.max_allowed)
        if written:
            await self._notifier.notify(
                owner_id,
                NotificationKind.GENERATION_COMPLETED,
                {
                    "service": service.service_type.value,
                    "words_generated": words,
                    "truncated": truncated,
                    "usage": after.to_dict(),
                },
            )
        if should_warn(after):
            await self._notifier.notify(
                owner_id,
                NotificationKind.USAGE_WARNING,
                usage_warning_payload(
                    after, service.service_type.value, WarningStage.POST_COMPLETION
                ),
            )

    async def _record_failure(
        self,
        db: AsyncSession,
        owner_id: UUID,
        service: ServiceRef,
        snapshot: RequestSnapshot,
        message: str,
        code: Optional[str],
        model_id: Optional[str],
        duration_ms: Optional[int],
        log: ContextualLogger,
    ) -> None:
        """Best-effort audit record of a failed attempt."""
        try:
            await self._ledger.record_failure(
                db,
                owner_id=owner_id,
                service_id=service.id,
                request=snapshot,
                error_message=message,
                error_code=code,
                model_id=model_id,
                duration_ms=duration_ms,
            )
        except LedgerWriteError as e:
            log.error(f"Failure record not written: {e}")

        await self._catalog.record_attempt(
            db, service.id, success=False, consumption=0, duration_ms=duration_ms
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
