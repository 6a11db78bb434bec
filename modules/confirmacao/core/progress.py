# progress.py
# Estado de progresso do envio como snapshots imutáveis: cada passo do
# disparador produz um novo SendProgress.

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Tuple


@dataclass(frozen=True)
class ProgressMessage:
    phone: str
    success: bool
    message: str


@dataclass(frozen=True)
class SendProgress:
    total: int
    sent: int = 0
    errors: int = 0
    current_phone: str = ""
    messages: Tuple[ProgressMessage, ...] = field(default_factory=tuple)

    @classmethod
    def start(cls, total: int) -> "SendProgress":
        return cls(total=total)

    @property
    def processed(self) -> int:
        return self.sent + self.errors

    @property
    def done(self) -> bool:
        return self.processed == self.total

    @property
    def percent(self) -> int:
        if not self.total:
            return 0
        return round(self.processed * 100 / self.total)

    def sending(self, phone: str) -> "SendProgress":
        return replace(self, current_phone=phone)

    def succeeded(self, phone: str, message: str) -> "SendProgress":
        self._check_room()
        return replace(
            self,
            sent=self.sent + 1,
            current_phone="",
            messages=self.messages + (ProgressMessage(phone, True, message),),
        )

    def failed(self, phone: str, message: str) -> "SendProgress":
        self._check_room()
        return replace(
            self,
            errors=self.errors + 1,
            current_phone="",
            messages=self.messages + (ProgressMessage(phone, False, message),),
        )

    def _check_room(self) -> None:
        if self.processed >= self.total:
            raise ValueError("Lote já concluído: sent + errors não pode passar de total")
