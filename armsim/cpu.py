"""A basic AArch64 CPU with a single-cycle, MIPS-style datapath.

Each machine cycle runs five stages in order: instruction fetch, decode,
execute (integer or floating point), memory access and write-back. The
stages communicate through auxiliary registers kept on the CPU object:
``ir``, ``a``, ``b``, the control flags, ``alu_out`` and ``mdr``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Protocol

from .bits import float_as_uint64_low, uint64_low_as_float
from .registers import RegisterFile

# Default program file and entry point of the simulated binary.
DEFAULT_PROGRAM = "isummation.o"
DEFAULT_START_ADDRESS = 0x40

# Size in bytes of the whole simulated memory.
MEMORY_SIZE = 8388608

# File that receives the memory access log.
MEMORY_LOG_FILE = "saida.txt"

_UINT32_MASK = 0xFFFFFFFF
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF
_ZERO_REGISTER = 31


class FPOp(IntEnum):
    """Floating-point operation mode; ``UNDEF`` marks an integer operation."""

    UNDEF = 0
    REG_128 = 1
    REG_64 = 2
    REG_32 = 3
    REG_16 = 4
    REG_8 = 5
    VEC_128 = 6
    VEC_64 = 7


class ALUControl(IntEnum):
    """Operation selected for the arithmetic unit."""

    UNDEF = 0
    NONE = 1
    ADD = 2
    SUB = 3
    DIV = 4
    MUL = 5


class MemControl(IntEnum):
    """Kind of data memory access performed in the memory stage."""

    UNDEF = 0
    NONE = 1
    READ32 = 2
    WRITE32 = 3
    READ64 = 4
    WRITE64 = 5


class WBControl(IntEnum):
    """Whether the write-back stage writes a destination register."""

    UNDEF = 0
    NONE = 1
    REG_WRITE = 2


class CPUErrorCode(IntEnum):
    """Error state of the CPU."""

    NONE = 0


class UnimplementedInstructionError(Exception):
    """Raised when an instruction or a control setting is not supported."""

    def __init__(self, message: str, instruction: int | None = None) -> None:
        if instruction is not None:
            message = f"{message} (IR=0x{instruction:08X})"
        super().__init__(message)
        self.instruction = instruction


class _Memory(Protocol):
    def read_instruction32(self, address: int) -> int: ...

    def read_data32(self, address: int) -> int: ...

    def read_data64(self, address: int) -> int: ...

    def write_data32(self, address: int, value: int) -> None: ...

    def write_data64(self, address: int, value: int) -> None: ...


class _Bank(Enum):
    SP = "sp"
    X = "x"
    W = "w"
    V = "v"
    ZR = "zr"


@dataclass(frozen=True)
class _Destination:
    bank: _Bank
    index: int = 0


class BasicCPU:
    """CPU that executes a limited subset of the A64 instruction set."""

    def __init__(self, memory: _Memory) -> None:
        self.memory = memory
        self.registers = RegisterFile()
        self.pc: int = 0

        self.cpu_error = CPUErrorCode.NONE
        self.process_finished = False

        self.ir: int = 0
        self.a: int = 0
        self.b: int = 0
        self.alu_ctrl = ALUControl.UNDEF
        self.fp_op = FPOp.UNDEF
        self.mem_ctrl = MemControl.UNDEF
        self.wb_ctrl = WBControl.UNDEF
        self.mem_to_reg = False
        self.alu_out: int = 0
        self.mdr: int = 0
        self.n_flag = False
        self.z_flag = False
        self.c_flag = False
        self.v_flag = False
        self._dest: _Destination | None = None

    # ------------------------------------------------------------------
    # Machine cycle
    # ------------------------------------------------------------------

    def run(self, start_address: int = DEFAULT_START_ADDRESS) -> int:
        """Execute from ``start_address`` until the process finishes.

        Returns 0 on a clean finish and 1 if the CPU entered an error
        state. Raises :class:`UnimplementedInstructionError` on the first
        instruction that is not supported.
        """
        self.pc = start_address & _UINT64_MASK
        while self.cpu_error is CPUErrorCode.NONE and not self.process_finished:
            self.fetch()
            self.decode()
            if self.fp_op is FPOp.UNDEF:
                self.execute_integer()
            else:
                self.execute_float()
            self.memory_access()
            self.write_back()
            self.pc = (self.pc + 4) & _UINT64_MASK
        return 0 if self.cpu_error is CPUErrorCode.NONE else 1

    def fetch(self) -> None:
        """Read the instruction at ``pc`` into ``ir``."""
        self.ir = self.memory.read_instruction32(self.pc) & _UINT32_MASK

    def decode(self) -> None:
        """Decode ``ir`` and set the operands and controls for later stages."""
        self.fp_op = FPOp.UNDEF
        group = self.ir & 0x1E000000  # bits 28-25
        if group in (0x10000000, 0x12000000):  # 100x data processing, immediate
            self._decode_data_proc_imm()
        elif group in (0x0A000000, 0x1A000000):  # x101 data processing, register
            self._decode_data_proc_reg()
        elif group in (0x0E000000, 0x1E000000):  # x111 scalar floating point
            self._decode_data_proc_float()
        else:
            raise UnimplementedInstructionError("instruction group not implemented", self.ir)

    def execute_integer(self) -> None:
        """Run the integer ALU on ``a`` and ``b`` into ``alu_out``."""
        if self.alu_ctrl is ALUControl.SUB:
            self.alu_out = (self.a - self.b) & _UINT64_MASK
        elif self.alu_ctrl is ALUControl.ADD:
            self.alu_out = (self.a + self.b) & _UINT64_MASK
        else:
            raise UnimplementedInstructionError(
                f"integer ALU control {self.alu_ctrl.name} not implemented", self.ir
            )

    def execute_float(self) -> None:
        """Run the floating-point ALU on ``a`` and ``b`` into ``alu_out``."""
        if self.fp_op is not FPOp.REG_32:
            raise UnimplementedInstructionError(
                f"floating-point mode {self.fp_op.name} not implemented", self.ir
            )
        fa = uint64_low_as_float(self.a)
        fb = uint64_low_as_float(self.b)
        if self.alu_ctrl is ALUControl.SUB:
            self.alu_out = float_as_uint64_low(fa - fb)
        elif self.alu_ctrl is ALUControl.ADD:
            self.alu_out = float_as_uint64_low(fa + fb)
        else:
            raise UnimplementedInstructionError(
                f"floating-point ALU control {self.alu_ctrl.name} not implemented", self.ir
            )

    def memory_access(self) -> None:
        """Perform the data memory access selected by ``mem_ctrl``."""
        if self.mem_ctrl is MemControl.READ32:
            self.mdr = self.memory.read_data32(self.alu_out) & _UINT32_MASK
        elif self.mem_ctrl is MemControl.WRITE32:
            self.memory.write_data32(self.alu_out, self.destination_value() & _UINT32_MASK)
        elif self.mem_ctrl is MemControl.READ64:
            self.mdr = self.memory.read_data64(self.alu_out) & _UINT64_MASK
        elif self.mem_ctrl is MemControl.WRITE64:
            self.memory.write_data64(self.alu_out, self.destination_value())

    def write_back(self) -> None:
        """Write the result to the destination register if requested."""
        if self.wb_ctrl is WBControl.NONE:
            return
        if self.wb_ctrl is not WBControl.REG_WRITE:
            raise UnimplementedInstructionError(
                f"write-back control {self.wb_ctrl.name} not implemented", self.ir
            )
        self._write_destination(self.mdr if self.mem_to_reg else self.alu_out)

    def destination_value(self) -> int:
        """Return the current 64-bit contents of the decoded destination register."""
        dest = self._require_destination()
        if dest.bank is _Bank.SP:
            return self.registers.sp
        if dest.bank in (_Bank.X, _Bank.W):
            return self.registers.x[dest.index]
        if dest.bank is _Bank.V:
            return self.registers.v[dest.index]
        return self.registers.zr

    # ------------------------------------------------------------------
    # Decoders
    # ------------------------------------------------------------------

    def _decode_data_proc_imm(self) -> None:
        ir = self.ir
        if ir & 0xFF800000 != 0xD1000000:
            raise UnimplementedInstructionError("immediate instruction not implemented", ir)
        # SUB (immediate), 64-bit variant
        if ir & 0x00400000:
            raise UnimplementedInstructionError("shifted immediate not implemented", ir)
        n = (ir & 0x000003E0) >> 5
        self.a = self.registers.sp if n == 31 else self.registers.read_x(n)
        self.b = (ir & 0x003FFC00) >> 10
        d = ir & 0x0000001F
        self._dest = _Destination(_Bank.SP) if d == 31 else _Destination(_Bank.X, d)
        self.alu_ctrl = ALUControl.SUB
        self.mem_ctrl = MemControl.NONE
        self.wb_ctrl = WBControl.REG_WRITE
        self.mem_to_reg = False

    def _decode_data_proc_reg(self) -> None:
        ir = self.ir
        if ir & 0xFF200000 not in (0x8B000000, 0x0B000000):
            raise UnimplementedInstructionError("register instruction not implemented", ir)
        # ADD (shifted register)
        if ir & 0x80000000:
            raise UnimplementedInstructionError("64-bit ADD (shifted register) not implemented", ir)
        n = (ir & 0x000003E0) >> 5
        m = (ir & 0x001F0000) >> 16
        shift = (ir & 0x00C00000) >> 22
        imm6 = (ir & 0x0000FC00) >> 10
        if imm6 >= 32:
            raise UnimplementedInstructionError("shift amount out of range for 32 bits", ir)
        bw = self._read_w_or_zero(m)
        if shift == 0:  # LSL
            operand = (bw << imm6) & _UINT32_MASK
        elif shift == 1:  # LSR
            operand = bw >> imm6
        elif shift == 2:  # ASR
            signed = bw - (1 << 32) if bw & 0x80000000 else bw
            operand = (signed >> imm6) & _UINT32_MASK
        else:
            raise UnimplementedInstructionError("reserved shift type", ir)
        self.a = self._read_w_or_zero(n)
        self.b = operand
        d = ir & 0x0000001F
        self._dest = _Destination(_Bank.ZR) if d == _ZERO_REGISTER else _Destination(_Bank.W, d)
        self.alu_ctrl = ALUControl.ADD
        self.mem_ctrl = MemControl.NONE
        self.wb_ctrl = WBControl.REG_WRITE
        self.mem_to_reg = False

    def _decode_data_proc_float(self) -> None:
        ir = self.ir
        opcode = ir & 0xFF20FC00
        if opcode == 0x1E203800:  # FSUB (scalar)
            operation = ALUControl.SUB
        elif opcode == 0x1E202800:  # FADD (scalar)
            operation = ALUControl.ADD
        else:
            raise UnimplementedInstructionError("floating-point instruction not implemented", ir)
        if ir & 0x00C00000:
            raise UnimplementedInstructionError("only single precision is implemented", ir)
        self.fp_op = FPOp.REG_32
        self.a = self.registers.read_s_bits((ir & 0x000003E0) >> 5)
        self.b = self.registers.read_s_bits((ir & 0x001F0000) >> 16)
        self._dest = _Destination(_Bank.V, ir & 0x0000001F)
        self.alu_ctrl = operation
        self.mem_ctrl = MemControl.NONE
        self.wb_ctrl = WBControl.REG_WRITE
        self.mem_to_reg = False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read_w_or_zero(self, n: int) -> int:
        return 0 if n == _ZERO_REGISTER else self.registers.read_w(n)

    def _require_destination(self) -> _Destination:
        if self._dest is None:
            raise RuntimeError("no destination register has been decoded")
        return self._dest

    def _write_destination(self, value: int) -> None:
        dest = self._require_destination()
        if dest.bank is _Bank.SP:
            self.registers.sp = value & _UINT64_MASK
        elif dest.bank is _Bank.X:
            self.registers.write_x(dest.index, value)
        elif dest.bank is _Bank.W:
            self.registers.write_w(dest.index, value)
        elif dest.bank is _Bank.V:
            self.registers.v[dest.index] = value & _UINT64_MASK