# retro6502/config/builder.py
import logging
import os
from typing import Optional, Tuple

from retro6502.transport.bus import Bus, RAM, ROM, Device
from retro6502.arch.mos6502.cpu import Mos6502Cpu
from retro6502.arch.mos6502.state import RunState
from retro6502.arch.mos6502.flags import RESET_VALUE
from retro6502.loader.loader import BinaryLoader, IntelHexLoader
from .models import SystemConfig, CpuInitialState

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    # @intent:pre-condition base_dir はプログラムイメージの相対パスの基準ディレクトリです。
    def build_system(self, config: SystemConfig, base_dir: Optional[str] = None) -> Tuple[Mos6502Cpu, Bus]:
        bus = Bus()

        for region in config.memory_map:
            size = region.end - region.start + 1
            device: Device
            if region.type == "RAM":
                device = RAM(size)
            elif region.type == "ROM":
                device = ROM(size)
            else:
                logger.warning("Unknown device type '%s' for range %04X-%04X, defaulting to RAM",
                               region.type, region.start, region.end)
                device = RAM(size)
            bus.register_device(region.start, region.end, device)

        for program in config.programs:
            path = program.path
            if base_dir is not None and not os.path.isabs(path):
                path = os.path.join(base_dir, path)
            if program.format == "ihex":
                IntelHexLoader().load_intel_hex(path, bus)
            else:
                BinaryLoader().load_binary(path, bus, program.address)

        cpu = Mos6502Cpu(bus, config.cpu)

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        return cpu, bus

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: Mos6502Cpu, config_state: CpuInitialState) -> None:
        """
        リセットベクトルを使う場合はCPUをリセットし、そうでなければConfigから指定された初期値を適用します。
        """
        if config_state.use_reset_vector:
            cpu.reset()
            return

        # ベクタ領域が未配置の構成もあるので、ここではバスを読まない
        state = cpu.state
        state.p.value = RESET_VALUE
        state.nmi_pending = False
        state.pc = config_state.pc & 0xFFFF
        state.sp = config_state.sp & 0xFF
        for reg_name, value in config_state.registers.items():
            if reg_name == "p":
                state.p.value = value
            elif reg_name in ("a", "x", "y"):
                setattr(state, reg_name, value & 0xFF)
            else:
                logger.warning("Ignoring unknown register '%s' in initial state", reg_name)
        state.run_state = RunState.RUNNING
