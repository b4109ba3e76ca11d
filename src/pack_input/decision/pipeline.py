"""Input decision pipeline: decides a verdict for every pack of a request.

Rules are evaluated top to bottom and short-circuit:

1. Global gate: input of this request type is switched off, reject all packs.
2. Picking-indicator gate: enforced but missing, reject all packs.
3. Known-article gate: one unknown article vetoes the whole request.
4. Per-pack evaluation: resolve the article, optionally decode the scan
   code, assign article data, run the enforced-field checks in order
   (expiry, batch, location, serial) and accept what survives.
5. Projection: every decided pack's article, pack and handling objects are
   projected through the operator's profile, then the response itself.

A snapshot of each pack is taken before the pipeline touches it and serves
as the MirrorInput source. The request is finished once the cycle completes;
an exception aborts the cycle and leaves it unfinished.
"""

import calendar
from collections.abc import Callable
from dataclasses import replace
from datetime import date

import structlog

from pack_input.articles import ArticleRecord, ArticleResolver, ResolveOptions, get_resolver
from pack_input.exceptions import ArticleAssignmentError
from pack_input.protocol.messages import InputHandlingKind, InputRequest, InputResponse, Pack
from pack_input.protocol.schema import snapshot
from pack_input.response.projector import project
from pack_input.scancodes import DecoderChain, get_decoder_chain, pzn_from_item_code

logger = structlog.get_logger(__name__)

UNKNOWN_ARTICLE_MESSAGE = "Unknown article."
VIRTUAL_PREFIX = "Virtual-"


def add_months(day: date, months: int) -> date:
    """``day`` shifted by ``months``, clamped to the end of the target month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


class InputDecisionPipeline:
    """Runs one input request through the configured rules."""

    def __init__(
        self,
        configuration,
        articles: ArticleResolver | None = None,
        decoders: DecoderChain | None = None,
        profile=None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.configuration = configuration
        self.articles = articles if articles is not None else get_resolver()
        self.decoders = decoders or get_decoder_chain()
        self.profile = profile
        self.today = today
        self.options = ResolveOptions(
            max_sub_item_quantity=configuration.max_sub_item_quantity,
            article_name=configuration.overwrite_article_name or None,
        )

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    def process(self, request: InputRequest) -> InputResponse:
        log = logger.bind(request_id=request.id, delivery=request.is_delivery)
        request_snapshot = snapshot(request)
        response = InputResponse.from_request(request)

        if not self._input_allowed(request):
            log.info("Input disabled, rejecting all packs", packs=len(request.packs))
            for pack in request.packs:
                self._decide(log, pack, snapshot(pack), InputHandlingKind.REJECTED)

        elif self.configuration.enforce_picking_indicator and not request.picking_indicator:
            log.info("Picking indicator missing, rejecting all packs", packs=len(request.packs))
            self._reject_all(log, request, InputHandlingKind.REJECTED_NO_PICKING_INDICATOR)

        elif self.configuration.only_known_articles and self._has_unknown_article(request):
            log.info("Unknown article in request, rejecting all packs", packs=len(request.packs))
            self._reject_all(log, request, InputHandlingKind.REJECTED, UNKNOWN_ARTICLE_MESSAGE)

        else:
            for pack in request.packs:
                self._evaluate(log, request, pack)

        self._project(response, request_snapshot)
        request.finish(response)
        return response

    # -------------------------------------------------------------------
    # Gates
    # -------------------------------------------------------------------
    def _input_allowed(self, request: InputRequest) -> bool:
        if not self.configuration.allow_stock_return_input:
            return False
        if request.is_delivery and not self.configuration.allow_stock_delivery_input:
            return False
        return True

    def _has_unknown_article(self, request: InputRequest) -> bool:
        return any(self.articles.find(pack.scan_code, self.options) is None for pack in request.packs)

    def _reject_all(self, log, request: InputRequest, kind: InputHandlingKind, message: str | None = None):
        for pack in request.packs:
            pack_snapshot = snapshot(pack)
            record = self.articles.resolve(pack.scan_code, self.options)
            self._assign_article(pack, record, with_virtual_article=request.is_delivery)
            self._decide(log, pack, pack_snapshot, kind, message)

    # -------------------------------------------------------------------
    # Per-pack evaluation
    # -------------------------------------------------------------------
    def _evaluate(self, log, request: InputRequest, pack: Pack) -> None:
        pack_snapshot = snapshot(pack)
        record = self.articles.resolve(pack.scan_code, self.options)

        if self.configuration.parse_scancodes:
            record = self._apply_decoded(pack, record)

        try:
            self._assign_article(pack, record, with_virtual_article=True)
        except ArticleAssignmentError as exc:
            if request.is_delivery:
                log.error("Article assignment failed", scan_code=pack.scan_code, error=str(exc))
                raise
            self._decide(log, pack, pack_snapshot, InputHandlingKind.REJECTED, str(exc))
            return

        missing = self._missing_field(pack)
        if missing is not None:
            self._decide(log, pack, pack_snapshot, missing)
            return

        self._complete_pack(pack)
        if self.configuration.fridge_only or record.requires_fridge:
            kind = InputHandlingKind.ALLOWED_FOR_FRIDGE
        else:
            kind = InputHandlingKind.ALLOWED
        self._decide(log, pack, pack_snapshot, kind)

    def _apply_decoded(self, pack: Pack, record: ArticleRecord) -> ArticleRecord:
        result = self.decoders.decode(pack.scan_code)
        if result is None:
            return record

        if result.batch_number:
            pack.batch_number = result.batch_number
        if result.external_id:
            pack.external_id = result.external_id
        if result.expiry_date is not None:
            pack.expiry_date = result.expiry_date
        if result.sub_item_quantity > 0:
            pack.sub_item_quantity = result.sub_item_quantity
        if result.serial_number:
            pack.serial_number = result.serial_number

        return replace(record, id=pzn_from_item_code(result.item_code) or result.item_code)

    def _missing_field(self, pack: Pack) -> InputHandlingKind | None:
        config = self.configuration
        if config.enforce_expiry_date and pack.expiry_date is None:
            return InputHandlingKind.REJECTED_NO_EXPIRY_DATE
        if config.enforce_batch_number and not pack.batch_number:
            return InputHandlingKind.REJECTED_NO_BATCH_NUMBER
        if config.enforce_stock_location and not pack.stock_location_id:
            return InputHandlingKind.REJECTED_NO_STOCK_LOCATION
        if config.enforce_serial_number and not pack.serial_number:
            return InputHandlingKind.REJECTED_NO_SERIAL_NUMBER
        return None

    def _complete_pack(self, pack: Pack) -> None:
        if not pack.batch_number:
            pack.batch_number = f"BATCH-{pack.scan_code}"
        if not pack.external_id:
            pack.external_id = f"EXTID-{pack.scan_code}"
        if pack.expiry_date is None:
            pack.expiry_date = add_months(self.today(), self.configuration.default_expiry_month_offset or 0)
        if self.configuration.overwrite_stock_location:
            pack.stock_location_id = self.configuration.overwrite_stock_location

    def _assign_article(self, pack: Pack, record: ArticleRecord, with_virtual_article: bool) -> None:
        config = self.configuration
        virtual_id = virtual_name = None
        if with_virtual_article and config.set_virtual_article:
            virtual_id = VIRTUAL_PREFIX + record.id[:-1]
            virtual_name = VIRTUAL_PREFIX + (record.name or "")

        pack.set_article_information(
            record.id,
            record.name,
            record.dosage_form,
            record.packaging_unit,
            max_sub_item_quantity=record.max_sub_item_quantity if config.set_max_sub_item_quantity else 0,
            virtual_article_id=virtual_id,
            virtual_article_name=virtual_name,
            requires_fridge=config.fridge_only or record.requires_fridge,
        )

    # -------------------------------------------------------------------
    # Verdict and projection
    # -------------------------------------------------------------------
    def _decide(self, log, pack: Pack, pack_snapshot: Pack, kind: InputHandlingKind, message: str | None = None):
        pack.set_handling(kind, message)
        log.info("Pack decided", scan_code=pack.scan_code, handling=kind.value, message=message)

        if pack.article is not None:
            self._project(pack.article, pack_snapshot.article)
        self._project(pack, pack_snapshot)
        self._project(pack.handling, pack_snapshot.handling)

    def _project(self, target, source) -> None:
        if self.profile is None:
            return
        policies = self.profile.policies_for(type(target))
        if policies:
            project(target, source, policies)
