# retro6502/config/loader.py
import yaml
from typing import Any, Dict, List

from retro6502.core.errors import ConfigError
from .models import (SystemConfig, CpuConfig, UndefinedOpcodePolicy, MemoryRegion,
                     CpuInitialState, ProgramImage)

DEVICE_TYPES = ("RAM", "ROM")
PROGRAM_FORMATS = ("bin", "ihex")

# @intent:responsibility YAML形式のシステム構成ファイルを読み込み、SystemConfig に変換します。
class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self.load_from_dict(data or {})

    def load_from_string(self, text: str) -> SystemConfig:
        return self.load_from_dict(yaml.safe_load(text) or {})

    def load_from_dict(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping, got {type(data).__name__}")
        return self._parse_config(data)

    def _parse_config(self, data: Dict[str, Any]) -> SystemConfig:
        cpu = self._parse_cpu(self._mapping(data.get("cpu"), "cpu"))

        # Parse Memory Map
        memory_map = []
        for region_data in self._sequence(data.get("memory_map"), "memory_map"):
            region_data = self._mapping(region_data, "memory_map entry")
            start = self._parse_int(region_data.get("start"))
            end = self._parse_int(region_data.get("end"))
            if not 0 <= start <= end <= 0xFFFF:
                raise ConfigError(f"Invalid memory region ${start:04X}-${end:04X}")
            memory_map.append(MemoryRegion(
                start=start,
                end=end,
                type=str(region_data.get("type", "RAM")).upper(),
                label=region_data.get("label", ""),
            ))

        # Parse Initial State
        initial_state_data = self._mapping(data.get("initial_state"), "initial_state")
        registers = {
            name: self._parse_int(value) & 0xFF
            for name, value in self._mapping(initial_state_data.get("registers"), "registers").items()
        }
        initial_state = CpuInitialState(
            pc=self._parse_int(initial_state_data.get("pc", 0)) & 0xFFFF,
            sp=self._parse_int(initial_state_data.get("sp", 0xFD)) & 0xFF,
            use_reset_vector=bool(initial_state_data.get("use_reset_vector", True)),
            registers=registers,
        )

        # Parse Program Images
        programs = []
        for program_data in self._sequence(data.get("programs"), "programs"):
            program_data = self._mapping(program_data, "program entry")
            if "path" not in program_data:
                raise ConfigError("Program entry requires a 'path'")
            fmt = str(program_data.get("format", "bin")).lower()
            if fmt not in PROGRAM_FORMATS:
                raise ConfigError(f"Unsupported program format: {fmt}")
            programs.append(ProgramImage(
                path=program_data["path"],
                address=self._parse_int(program_data.get("address", 0)),
                format=fmt,
            ))

        return SystemConfig(
            cpu=cpu,
            memory_map=memory_map,
            initial_state=initial_state,
            programs=programs,
        )

    def _parse_cpu(self, data: Dict[str, Any]) -> CpuConfig:
        policy_value = str(data.get("undefined_opcode_policy", UndefinedOpcodePolicy.NOP.value)).lower()
        try:
            policy = UndefinedOpcodePolicy(policy_value)
        except ValueError:
            raise ConfigError(f"Invalid undefined_opcode_policy: {policy_value}") from None

        return CpuConfig(
            undefined_opcode_policy=policy,
            decimal_mode=self._parse_bool(data.get("decimal_mode", True), "decimal_mode"),
            brk_nmi_hijack=self._parse_bool(data.get("brk_nmi_hijack", False), "brk_nmi_hijack"),
        )

    # @intent:responsibility 省略 (None) は空として扱い、型が違う場合は ConfigError にします。
    def _mapping(self, value: Any, name: str) -> Dict[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigError(f"{name} must be a mapping, got {type(value).__name__}")
        return value

    def _sequence(self, value: Any, name: str) -> List[Any]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ConfigError(f"{name} must be a list, got {type(value).__name__}")
        return value

    def _parse_bool(self, value: Any, name: str) -> bool:
        if isinstance(value, bool):
            return value
        raise ConfigError(f"{name} must be a boolean, got {value!r}")

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip()
            try:
                if text.lower().startswith("0x"):
                    return int(text, 16)
                if text.startswith("$"):
                    return int(text[1:], 16)
                return int(text)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer format: {value}")
