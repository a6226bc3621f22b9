"""
고객 외상 장부 (Customer Debit Ledger)

외상/상환 거래 생성 → 승인/거부 → 승인된 거래만 잔액에 반영.

서비스는 하위 모듈에서 import (core.domain.models가 이 패키지의 타입을 사용하므로
여기서는 타입만 노출):

```python
from core.ledger.service import LedgerService

ledger = LedgerService.build(db, recorder)

customer = await ledger.create_customer(actor, name="Ada")
txn = await ledger.create_transaction(
    actor, customer.id, TransactionType.DEBIT, "100", "Groceries"
)
await ledger.approve_transaction(txn.id, manager)

balance = await ledger.get_balance(customer.id)  # Decimal("100.00")
```
"""

from core.ledger.types import EDITABLE_FIELDS, TransactionStatus, TransactionType

__all__ = [
    "TransactionType",
    "TransactionStatus",
    "EDITABLE_FIELDS",
]
