from dataclasses import dataclass, field
from typing import List, Optional

@dataclass
class QuirkConfig:
    shift_uses_vy: bool = False            # True: 8XY6/8XYE はVYをシフト元にする
    load_store_increments_i: bool = False  # True: FX55/FX65 の後にIを進める

@dataclass
class EmulatorConfig:
    clock_frequency: float = 500.0         # 命令/秒
    start_paused: bool = False             # デバッグモード (一時停止状態で開始)
    random_seed: Optional[int] = 222       # None の場合は非決定的
    quirks: QuirkConfig = field(default_factory=QuirkConfig)
    breakpoints: List[int] = field(default_factory=list)
    memory_window: int = 16
    program: Optional[str] = None
