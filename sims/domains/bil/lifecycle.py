# sims/domains/bil/lifecycle.py

"""
송장 수명 주기 컨트롤러 모듈입니다.

상태는 OPEN(생성 성공으로만 도달)과 CLOSED(print 성공으로만 도달, 종료 상태) 두 가지입니다.

print 는 청구 권한 서비스 안에서 (a) 재고 서비스의 잔량 차감과 (b) 송장 CLOSED 처리가
모두 일어나거나 모두 일어나지 않는 분산 트랜잭션입니다.
클라이언트는 그 내부를 볼 수 없으므로 아래 두 가지만 책임집니다.

1. 클라이언트 측 가드: CLOSED 로 관측된 송장은 다시 print 하지 않으며,
   같은 송장에 대해 동시에 하나의 print 요청만 보냅니다.
2. 결과 해석: 2xx 는 두 작업이 모두 커밋됨, 그 외(503 포함)는 송장이 바뀌지 않았음을 의미합니다.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Set

from sims.core.errors import (
    ClassifiedError,
    InvoiceAlreadyClosedError,
    InvoiceNotObservedError,
    PrintInFlightError,
)
from sims.domains.bil import schemas as bil_schemas
from sims.domains.bil.client import InvoiceClient
from sims.domains.inv.cache import BalanceCache

logger = logging.getLogger(__name__)


class InvoiceLifecycleController:
    """
    관측한 송장들의 마지막 사본을 보관하고 OPEN -> CLOSED 전이를 수행합니다.
    하나의 이벤트 루프(단일 스레드)에서 사용하는 것을 전제로 합니다.
    """

    def __init__(self, invoice_client: InvoiceClient, balance_cache: BalanceCache):
        self._client = invoice_client
        self._cache = balance_cache
        self._invoices: Dict[str, bil_schemas.InvoiceResponse] = {}
        self._pending_prints: Dict[str, asyncio.Task] = {}
        self._background: Set[asyncio.Task] = set()

    # =========================================================================
    # 조회
    # =========================================================================
    def get_observed(self, invoice_id: str) -> Optional[bil_schemas.InvoiceResponse]:
        """마지막으로 관측된 송장 사본을 반환합니다. (네트워크 요청 없음)"""
        return self._invoices.get(invoice_id)

    def observed(self) -> List[bil_schemas.InvoiceResponse]:
        return sorted(self._invoices.values(), key=lambda invoice: invoice.number)

    def is_printing(self, invoice_id: str) -> bool:
        return invoice_id in self._pending_prints

    async def load(self, invoice_id: str) -> bil_schemas.InvoiceResponse:
        invoice = await self._client.get_invoice(invoice_id)
        return self._observe(invoice)

    async def load_all(self) -> List[bil_schemas.InvoiceResponse]:
        invoices = await self._client.list_invoices()
        return [self._observe(invoice) for invoice in invoices]

    def _observe(self, invoice: bil_schemas.InvoiceResponse) -> bil_schemas.InvoiceResponse:
        """
        새로 받은 사본을 기록합니다.
        이미 CLOSED 로 관측된 송장은 불변이므로 기존 사본을 유지합니다.
        (늦게 도착한 OPEN 사본으로 되돌아가지 않음)
        """
        known = self._invoices.get(invoice.id)
        if known is not None and known.is_closed:
            if invoice.is_open:
                logger.warning("Ignoring stale OPEN copy of closed invoice %s.", invoice.id)
            return known
        self._invoices[invoice.id] = invoice
        return invoice

    # =========================================================================
    # 생성
    # =========================================================================
    async def create(self, submission: bil_schemas.InvoiceCreate) -> bil_schemas.InvoiceResponse:
        """
        검증된 초안을 청구 권한 서비스에 보냅니다.
        생성만으로는 재고가 바뀌지 않으므로 캐시를 갱신하지 않습니다.
        """
        invoice = await self._client.create_invoice(submission)
        logger.info("Invoice %s (number %d) created with %d item(s).", invoice.id, invoice.number, len(invoice.items))
        return self._observe(invoice)

    # =========================================================================
    # print (OPEN -> CLOSED)
    # =========================================================================
    async def print(self, invoice_id: str) -> bil_schemas.InvoiceResponse:
        """
        송장을 print 하여 CLOSED 로 전이시키고 재고를 차감합니다.

        다음 경우에는 네트워크 요청 없이 로컬에서 거부합니다.
        - 마지막으로 관측된 상태가 CLOSED 인 경우 (`InvoiceAlreadyClosedError`)
        - 한 번도 관측하지 않은 송장인 경우 (`InvoiceNotObservedError`)
        - 같은 송장의 print 가 이미 진행 중인 경우 (`PrintInFlightError`)

        요청은 별도 태스크로 실행되므로 호출자가 취소되어도 요청은 계속되고,
        늦게 도착한 성공도 송장 상태와 캐시에 반영됩니다.
        실패 시 상태는 OPEN 그대로이며 분류된 에러가 전달됩니다. 자동 재시도는 없습니다.
        """
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            raise InvoiceNotObservedError(f"Invoice {invoice_id} has not been loaded; load it before printing.")
        if invoice.is_closed:
            raise InvoiceAlreadyClosedError(f"Invoice {invoice.number} is already closed and cannot be printed again.")
        if invoice_id in self._pending_prints:
            raise PrintInFlightError(f"Invoice {invoice.number} is already being printed.")

        #  await 전에 진행 중 표시를 등록해야 두 번째 호출이 확실히 거부됩니다.
        task = asyncio.ensure_future(self._execute_print(invoice_id))
        self._pending_prints[invoice_id] = task
        self._background.add(task)
        task.add_done_callback(lambda done: self._print_finished(invoice_id, done))
        return await asyncio.shield(task)

    async def _execute_print(self, invoice_id: str) -> bil_schemas.InvoiceResponse:
        try:
            result = await self._client.print_invoice(invoice_id)
        except ClassifiedError as exc:
            logger.warning(
                "Print of invoice %s failed (%s); invoice stays open.", invoice_id, exc.kind.value
            )
            raise

        closed = self._close_locally(invoice_id, result)
        logger.info("Invoice %s printed: %s", invoice_id, result.message or "closed")

        #  print 는 재고를 움직이는 유일한 작업이므로 캐시를 갱신합니다.
        await self._cache.refresh()
        return closed

    def _close_locally(
        self, invoice_id: str, result: bil_schemas.PrintResponse
    ) -> bil_schemas.InvoiceResponse:
        """
        로컬 사본을 CLOSED 로 전이합니다.
        응답에 송장이 있으면 그 필드를 채택하고, 없으면 기존 필드를 유지한 채 상태만 바꿉니다.
        """
        current = self._invoices[invoice_id]
        if not result.success:
            logger.warning("Print of invoice %s returned 2xx with success=false; treating as committed.", invoice_id)

        if result.invoice:
            merged = {**current.model_dump(), **result.invoice}
            try:
                closed = bil_schemas.InvoiceResponse.model_validate(merged)
            except ValueError:
                logger.warning("Unreadable invoice in print response for %s; keeping local fields.", invoice_id)
                closed = current
        else:
            closed = current

        if not closed.is_closed:
            closed = closed.model_copy(update={"status": bil_schemas.InvoiceStatus.CLOSED})
        self._invoices[invoice_id] = closed
        return closed

    def _print_finished(self, invoice_id: str, task: asyncio.Task) -> None:
        self._background.discard(task)
        if self._pending_prints.get(invoice_id) is task:
            del self._pending_prints[invoice_id]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and not isinstance(exc, ClassifiedError):
            logger.error("Unexpected error while printing invoice %s: %r", invoice_id, exc)

    async def drain(self) -> None:
        """진행 중인 print 요청이 모두 끝날 때까지 기다립니다. (결과/에러는 무시)"""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
