# pacing.py
# Controle de ritmo dos envios: fila de tamanho 1 com intervalo fixo entre itens.
# Limita a carga no webhook do n8n; o disparador não conhece a política.

from __future__ import annotations
import asyncio
import time
from typing import Awaitable, Callable, Optional

CONFIRMATION_DELAY_SECONDS = 0.3


class FixedDelayPacer:
    """
    Libera um envio por vez. Entre o fim de um envio e o início do próximo
    espera `delay` segundos. O primeiro envio sai imediatamente.

    Uso:
        async with pacer:
            await enviar()
    """

    def __init__(
        self,
        delay: float = CONFIRMATION_DELAY_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.delay = delay
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._released_at: Optional[float] = None

    async def acquire(self) -> None:
        await self._lock.acquire()
        if self._released_at is None:
            return
        remaining = self.delay - (self._clock() - self._released_at)
        if remaining > 0:
            try:
                await self._sleep(remaining)
            except BaseException:
                # Cancelado na espera: __aexit__ não roda, então solta aqui
                self._lock.release()
                raise

    def release(self) -> None:
        self._released_at = self._clock()
        self._lock.release()

    async def __aenter__(self) -> "FixedDelayPacer":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
