# armsim

A small AArch64 CPU simulator for teaching computer architecture.
The CPU uses a MIPS-style datapath. Every instruction goes through five
stages: fetch, decode, execute (integer or floating point), memory access
and write-back.

The CPU decodes only a few instructions:

- `sub` with an immediate (64-bit form, unshifted immediate; `sp` as source or destination)
- `add` with a shifted register (32-bit form, LSL/LSR/ASR)
- scalar single-precision `fadd` and `fsub`

Any other encoding raises `armsim.cpu.UnimplementedInstructionError`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

`armsim.cpu.BasicCPU` needs a memory object. That object must provide
`read_instruction32`, `read_data32`, `read_data64`, `write_data32` and
`write_data64`. Each of these takes a byte address.

```python
from armsim.cpu import BasicCPU, ALUControl

class Memory:
    def __init__(self, words):
        self.words = words  # address -> 32-bit instruction
        self.data = {}

    def read_instruction32(self, address):
        return self.words[address]

    def read_data32(self, address):
        return self.data.get(address, 0) & 0xFFFFFFFF

    def read_data64(self, address):
        return self.data.get(address, 0)

    def write_data32(self, address, value):
        self.data[address] = value & 0xFFFFFFFF

    def write_data64(self, address, value):
        self.data[address] = value

cpu = BasicCPU(Memory({0x40: 0xD10043FF}))   # sub sp, sp, #16
cpu.registers.sp = 0x1000
cpu.pc = 0x40

cpu.fetch()
cpu.decode()
assert cpu.alu_ctrl is ALUControl.SUB
cpu.execute_integer()
cpu.memory_access()
cpu.write_back()
assert cpu.destination_value() == 0xFF0
```

You can step through the stages by hand and look at the values between
them:

- the latches `ir`, `a`, `b`, `alu_out` and `mdr`
- the controls `fp_op`, `alu_ctrl`, `mem_ctrl`, `wb_ctrl` and `mem_to_reg`

`cpu.run(start_address)` runs the full cycle repeatedly, adding 4 to `pc`
after each instruction. The default start address is `0x40`. It stops
when `process_finished` is set or the CPU enters an error state, and
returns 0 or 1. None of the supported instructions sets
`process_finished`, so in practice a run ends when it meets an
unsupported instruction, which raises `UnimplementedInstructionError`,
or when the memory object raises.

### Registers

`cpu.registers` is an `armsim.registers.RegisterFile`. Its attributes are:

- `x`: 31 integer registers
- `v`: 32 floating-point registers, held as 64-bit patterns
- `sp`: the stack pointer
- `zr`: always zero

Its access methods are:

- `read_w` / `write_w`: 32-bit integer views
- `read_x` / `write_x`: 64-bit integer views
- `read_s` / `write_s`: single-precision views
- `read_s_bits`: the raw 32-bit pattern of an S register
- `read_d` / `write_d`: double-precision views

An index out of range raises `IndexError`.

### Bit views

`armsim.bits` converts floats to and from their raw IEEE 754 bit patterns:

- `float_as_uint64_low` and `uint64_low_as_float` for single precision
- `double_as_uint64` and `uint64_as_double` for double precision

## What the package does not do

- There is no memory implementation. You supply the memory object yourself.
- There is no loader for object files.
- There is no command-line program.
- No instruction ends a run. Branches, loads and stores are not decoded.