"""Fee schedule and metering for the local sandbox."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from ..errors import GasExceeded


TERA = 10**12
DEFAULT_GAS_LIMIT = 300 * TERA


@dataclass(frozen=True)
class GasSchedule:
    """Per-operation fees, in gas units."""

    # Converting the call into a receipt (burnt outside the prepaid gas).
    receipt_creation_send: int = 108_059_500_000
    function_call_send: int = 2_319_861_500_000
    function_call_byte_send: int = 2_235_934
    # Executing the receipt.
    receipt_creation_exec: int = 108_059_500_000
    function_call_exec: int = 2_319_861_500_000
    function_call_byte_exec: int = 2_235_934
    contract_loading: int = 35_445_963
    input_byte: int = 2_000_000
    action_dispatch: int = 350_000_000
    memory_op: int = 50_000_000
    # Storage host functions.
    storage_read_base: int = 56_356_845_750
    storage_read_key_byte: int = 30_952_533
    storage_read_value_byte: int = 5_611_005
    storage_write_base: int = 64_196_736_000
    storage_write_key_byte: int = 70_482_867
    storage_write_value_byte: int = 31_018_539
    storage_write_evicted_byte: int = 32_117_307
    storage_remove_base: int = 53_473_030_500
    storage_remove_key_byte: int = 38_220_384
    storage_remove_ret_value_byte: int = 11_531_556
    storage_has_key_base: int = 54_039_896_625
    storage_has_key_byte: int = 30_790_845

    def transaction_cost(self, payload_size: int) -> int:
        return (
            self.receipt_creation_send
            + self.function_call_send
            + self.function_call_byte_send * payload_size
        )

    def receipt_base_cost(self, payload_size: int) -> int:
        return (
            self.receipt_creation_exec
            + self.function_call_exec
            + self.function_call_byte_exec * payload_size
            + self.contract_loading
            + self.input_byte * payload_size
        )


class GasMeter:
    """Accumulates gas for one receipt and enforces its prepaid ceiling."""

    def __init__(self, limit: int, schedule: GasSchedule | None = None) -> None:
        if limit <= 0:
            raise ValueError(f"Gas limit must be positive, got {limit}")
        self.limit = limit
        self.schedule = schedule or GasSchedule()
        self.used = 0
        self.counts: Counter[str] = Counter()

    def charge(self, amount: int, reason: str) -> None:
        if amount < 0:
            raise ValueError(f"Negative gas charge for {reason}: {amount}")
        self.used += amount
        self.counts[reason] += 1
        if self.used > self.limit:
            raise GasExceeded(self.used, self.limit)

    def storage_read(self, key_len: int, value_len: int) -> None:
        s = self.schedule
        self.charge(
            s.storage_read_base
            + s.storage_read_key_byte * key_len
            + s.storage_read_value_byte * value_len,
            "storage_read",
        )

    def storage_write(self, key_len: int, value_len: int, evicted_len: int) -> None:
        s = self.schedule
        self.charge(
            s.storage_write_base
            + s.storage_write_key_byte * key_len
            + s.storage_write_value_byte * value_len
            + s.storage_write_evicted_byte * evicted_len,
            "storage_write",
        )

    def storage_remove(self, key_len: int, removed_len: int) -> None:
        s = self.schedule
        self.charge(
            s.storage_remove_base
            + s.storage_remove_key_byte * key_len
            + s.storage_remove_ret_value_byte * removed_len,
            "storage_remove",
        )

    def storage_has_key(self, key_len: int) -> None:
        s = self.schedule
        self.charge(
            s.storage_has_key_base + s.storage_has_key_byte * key_len,
            "storage_has_key",
        )

    def memory_op(self) -> None:
        self.charge(self.schedule.memory_op, "memory_op")

    def dispatch(self) -> None:
        self.charge(self.schedule.action_dispatch, "dispatch")
