import pytest

from armsim.bits import float_as_uint64_low
from armsim.cpu import (
    ALUControl,
    BasicCPU,
    FPOp,
    MemControl,
    UnimplementedInstructionError,
    WBControl,
)

START_SP = 0x1000


class FakeMemory:
    def __init__(self, instructions=None):
        self.instructions = dict(instructions or {})
        self.data = {}

    def read_instruction32(self, address):
        return self.instructions.get(address, 0)

    def read_data32(self, address):
        return self.data.get(address, 0) & 0xFFFFFFFF

    def read_data64(self, address):
        return self.data.get(address, 0)

    def write_data32(self, address, value):
        self.data[address] = value & 0xFFFFFFFF

    def write_data64(self, address, value):
        self.data[address] = value


def make_cpu(address, instruction):
    cpu = BasicCPU(FakeMemory({address: instruction}))
    cpu.registers.sp = START_SP
    cpu.pc = address
    return cpu


def run_stages(cpu):
    cpu.fetch()
    cpu.decode()
    if cpu.fp_op is FPOp.UNDEF:
        cpu.execute_integer()
    else:
        cpu.execute_float()
    cpu.memory_access()
    cpu.write_back()


def test_sub_sp_immediate():
    cpu = make_cpu(0x40, 0xD10043FF)
    cpu.fetch()
    assert cpu.ir == 0xD10043FF
    cpu.decode()
    assert (cpu.a, cpu.b) == (START_SP, 16)
    assert cpu.alu_ctrl is ALUControl.SUB
    assert cpu.mem_ctrl is MemControl.NONE
    assert cpu.wb_ctrl is WBControl.REG_WRITE
    cpu.execute_integer()
    assert cpu.alu_out == START_SP - 16
    cpu.memory_access()
    cpu.write_back()
    assert cpu.destination_value() == START_SP - 16
    assert cpu.registers.sp == 0xFF0


def test_sub_sp_32():
    cpu = make_cpu(0x40, 0xD10083FF)
    run_stages(cpu)
    assert cpu.b == 32
    assert cpu.registers.sp == START_SP - 32


def test_add_w1_w1_w0():
    cpu = make_cpu(0x68, 0x0B000021)
    cpu.registers.write_w(1, 7)
    cpu.registers.write_w(0, 16)
    cpu.fetch()
    assert cpu.ir == 0x0B000021
    cpu.decode()
    assert (cpu.a, cpu.b) == (7, 16)
    assert cpu.alu_ctrl is ALUControl.ADD
    assert cpu.mem_ctrl is MemControl.NONE
    assert cpu.wb_ctrl is WBControl.REG_WRITE
    cpu.execute_integer()
    assert cpu.alu_out == 23
    cpu.memory_access()
    cpu.write_back()
    assert cpu.destination_value() == 23
    assert cpu.registers.read_w(1) == 23


def test_add_with_lsl_shift():
    instruction = 0x0B000000 | (4 << 16) | (3 << 10) | (3 << 5) | 2
    cpu = make_cpu(0x0, instruction)
    cpu.registers.write_w(3, 1)
    cpu.registers.write_w(4, 2)
    run_stages(cpu)
    assert cpu.b == 16
    assert cpu.registers.read_w(2) == 17


def test_add_with_asr_shift_keeps_sign():
    instruction = 0x0B000000 | (2 << 22) | (4 << 16) | (1 << 10) | (3 << 5) | 2
    cpu = make_cpu(0x0, instruction)
    cpu.registers.write_w(3, 0)
    cpu.registers.write_w(4, 0xFFFFFFF0)
    run_stages(cpu)
    assert cpu.b == 0xFFFFFFF8
    assert cpu.registers.read_w(2) == 0xFFFFFFF8


def test_add_32_bit_wraps():
    cpu = make_cpu(0x68, 0x0B000021)
    cpu.registers.write_w(1, 0xFFFFFFFF)
    cpu.registers.write_w(0, 1)
    run_stages(cpu)
    assert cpu.registers.read_x(1) == 0


def test_fsub_s0_s1_s0():
    cpu = make_cpu(0x8C, 0x1E203820)
    cpu.registers.write_s(1, -0.7)
    cpu.registers.write_s(0, 0.5)
    cpu.fetch()
    assert cpu.ir == 0x1E203820
    cpu.decode()
    assert cpu.fp_op is FPOp.REG_32
    assert cpu.a == 0xBF333333
    assert cpu.b == 0x3F000000
    assert cpu.alu_ctrl is ALUControl.SUB
    assert cpu.mem_ctrl is MemControl.NONE
    assert cpu.wb_ctrl is WBControl.REG_WRITE
    cpu.execute_float()
    assert cpu.alu_out == 0xBF99999A
    cpu.memory_access()
    cpu.write_back()
    assert cpu.destination_value() == 0xBF99999A
    assert cpu.registers.read_s_bits(0) == 0xBF99999A


def test_fadd_s1_s1_s0():
    cpu = make_cpu(0xBC, 0x1E202821)
    cpu.registers.write_s(1, -0.7)
    cpu.registers.write_s(0, 0.5)
    cpu.fetch()
    assert cpu.ir == 0x1E202821
    cpu.decode()
    assert (cpu.a, cpu.b) == (0xBF333333, 0x3F000000)
    assert cpu.alu_ctrl is ALUControl.ADD
    assert cpu.wb_ctrl is WBControl.REG_WRITE
    cpu.execute_float()
    assert cpu.alu_out == 0xBE4CCCCC
    cpu.memory_access()
    cpu.write_back()
    assert cpu.registers.read_s_bits(1) == 0xBE4CCCCC


def test_fadd_result_matches_single_precision_value():
    cpu = make_cpu(0xBC, 0x1E202821)
    cpu.registers.write_s(1, 1.5)
    cpu.registers.write_s(0, 2.25)
    run_stages(cpu)
    assert cpu.registers.read_s(1) == 3.75
    assert cpu.registers.read_s_bits(1) == float_as_uint64_low(3.75)


@pytest.mark.parametrize(
    "instruction",
    [
        0x00000000,  # unimplemented group
        0xD14043FF,  # SUB immediate with sh = 1
        0x8B000021,  # 64-bit ADD (shifted register)
        0x0BC00021,  # reserved shift type
        0x1E603820,  # FSUB with double precision
        0x1E201821,  # FDIV is not supported
    ],
)
def test_unimplemented_instructions_raise(instruction):
    cpu = make_cpu(0x0, instruction)
    cpu.fetch()
    with pytest.raises(UnimplementedInstructionError) as info:
        cpu.decode()
    assert info.value.instruction == instruction


def test_execute_integer_with_undefined_control_raises():
    cpu = make_cpu(0x0, 0)
    with pytest.raises(UnimplementedInstructionError):
        cpu.execute_integer()


def test_execute_float_requires_single_precision_mode():
    cpu = make_cpu(0x0, 0)
    cpu.alu_ctrl = ALUControl.ADD
    with pytest.raises(UnimplementedInstructionError):
        cpu.execute_float()


def test_write_back_with_undefined_control_raises():
    cpu = make_cpu(0x0, 0)
    with pytest.raises(UnimplementedInstructionError):
        cpu.write_back()


def test_destination_value_before_decode_raises():
    cpu = make_cpu(0x0, 0)
    with pytest.raises(RuntimeError):
        cpu.destination_value()


def test_memory_access_write_and_read():
    cpu = make_cpu(0x40, 0xD10043FF)
    cpu.fetch()
    cpu.decode()
    cpu.execute_integer()
    cpu.mem_ctrl = MemControl.WRITE32
    cpu.memory_access()
    assert cpu.memory.data[0xFF0] == START_SP

    cpu.memory.data[0xFF0] = 0x123456789
    cpu.mem_ctrl = MemControl.READ64
    cpu.mem_to_reg = True
    cpu.memory_access()
    assert cpu.mdr == 0x123456789
    cpu.write_back()
    assert cpu.registers.sp == 0x123456789


def test_run_executes_until_unimplemented_instruction():
    memory = FakeMemory({0x40: 0xD10043FF, 0x44: 0x0B000021, 0x48: 0x00000000})
    cpu = BasicCPU(memory)
    cpu.registers.sp = START_SP
    cpu.registers.write_w(1, 7)
    cpu.registers.write_w(0, 16)
    with pytest.raises(UnimplementedInstructionError):
        cpu.run(0x40)
    assert cpu.registers.sp == 0xFF0
    assert cpu.registers.read_w(1) == 23
    assert cpu.pc == 0x48