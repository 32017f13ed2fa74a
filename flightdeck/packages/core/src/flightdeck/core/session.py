"""SessionStateMachine -- 前后台切换推导会话边界

ACTIVE --background--> BACKGROUNDED(since)
BACKGROUNDED(since) --foreground--> ACTIVE
    now - since > timeout_s 时视为会话边界（SESSION_RESTARTED），否则静默恢复
任意状态 --terminate--> TERMINATED（终态，之后的信号全部忽略）

阈值不通过定时器主动检测，只在下一次回到前台时比较时钟差值。
"""

from datetime import datetime

import structlog

from .config import DEFAULT_SESSION_TIMEOUT_S
from .models.enums import (
    LifecycleSignal,
    SessionState,
    SessionTransition,
    validate_transition,
)
from .periods import Clock, system_clock

log = structlog.get_logger()


class SessionStateMachine:
    """会话状态机，只负责判定，会话边界的副作用由 Tracker 执行"""

    def __init__(
        self,
        clock: Clock = system_clock,
        timeout_s: float = DEFAULT_SESSION_TIMEOUT_S,
    ) -> None:
        self._clock = clock
        self._timeout_s = timeout_s
        self._state = SessionState.ACTIVE
        self._backgrounded_since: datetime | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def backgrounded_since(self) -> datetime | None:
        return self._backgrounded_since

    @property
    def is_terminated(self) -> bool:
        return self._state is SessionState.TERMINATED

    def handle(self, signal: LifecycleSignal) -> SessionTransition:
        """处理一个生命周期信号

        Args:
            signal: 生命周期信号

        Returns:
            本次信号导致的结果
        """
        if self.is_terminated:
            log.debug("lifecycle_signal_after_terminate", signal=signal.value)
            return SessionTransition.IGNORED

        if signal is LifecycleSignal.BACKGROUNDED:
            self._move_to(SessionState.BACKGROUNDED)
            self._backgrounded_since = self._clock()
            return SessionTransition.BACKGROUNDED

        if signal is LifecycleSignal.FOREGROUNDED:
            return self._on_foreground()

        self._move_to(SessionState.TERMINATED)
        return SessionTransition.TERMINATED

    def _on_foreground(self) -> SessionTransition:
        if self._state is not SessionState.BACKGROUNDED or self._backgrounded_since is None:
            # 已在前台（如启动后的首次 foreground 通知）
            return SessionTransition.NONE

        elapsed_s = (self._clock() - self._backgrounded_since).total_seconds()
        self._move_to(SessionState.ACTIVE)
        self._backgrounded_since = None

        if elapsed_s > self._timeout_s:
            log.debug("session_timeout_elapsed", elapsed_s=elapsed_s, timeout_s=self._timeout_s)
            return SessionTransition.SESSION_RESTARTED
        return SessionTransition.RESUMED

    def _move_to(self, to_state: SessionState) -> None:
        if not validate_transition(self._state, to_state):
            raise RuntimeError(f"非法会话状态流转: {self._state} -> {to_state}")
        self._state = to_state
