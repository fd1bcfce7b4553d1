# pipesim

A cycle-level simulator of a small five-stage pipelined processor
(fetch, decode/register fetch, execute, memory, write-back) with an
8-bit datapath, 16-bit instructions, sixteen registers and operand
forwarding.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Running

By default the simulator reads three files from the current directory:

- `ICacheData.txt`: up to 256 hex bytes holding the program
- `DCacheData.txt`: up to 256 hex bytes, the initial data memory
- `RegisterData.txt`: up to 16 hex values, the initial register contents

Values are separated by whitespace; reading stops at the first word that
is not a hex number, and any entries not given start at zero.

```
pipesim
```

Options:

| Option            | Meaning                                          |
|-------------------|--------------------------------------------------|
| `--icache PATH`   | instruction bytes (default `ICacheData.txt`)     |
| `--dcache PATH`   | data bytes (default `DCacheData.txt`)            |
| `--registers PATH`| register values (default `RegisterData.txt`)     |
| `--output-dir DIR`| where to write the result files (default `.`)    |
| `--max-cycles N`  | give up if no halt is reached within N cycles    |

The program runs from address 0 until a halt instruction has drained
through the pipeline. Three files are then written to the output
directory:

- `RF.out.txt`: the final register values in hex, one per line
- `D$.out.txt`: the final data memory, one byte per line, at least two
  hex digits each
- `Output.txt`: instruction counts for each class, cycles per
  instruction and the number of stalls (data and control)

The command exits with status 1, printing a message to standard error,
if an input file cannot be read or the cycle limit is exceeded.
Without `--max-cycles`, a program that never halts runs forever.

## Instruction set

Each instruction is 16 bits, stored big-endian in two bytes. Its top
four bits are the opcode; `rd`, `rs1` and `rs2` are the following three
4-bit fields.

| Opcode | Instruction                  | Effect                              |
|--------|------------------------------|-------------------------------------|
| 0      | ADD  rd, rs1, rs2            | rd = (rs1 + rs2) & 0xff             |
| 1      | SUB  rd, rs1, rs2            | rd = (rs1 - rs2) & 0xff             |
| 2      | MUL  rd, rs1, rs2            | rd = (rs1 * rs2) & 0xff             |
| 3      | INC  rd                      | rd = (rd + 1) & 0xff                |
| 4      | AND  rd, rs1, rs2            | rd = rs1 & rs2                      |
| 5      | OR   rd, rs1, rs2            | rd = rs1 \| rs2                     |
| 6      | NOT  rd, rs1                 | rd = ~rs1                           |
| 7      | XOR  rd, rs1, rs2            | rd = rs1 ^ rs2                      |
| 8      | LOAD rd, [rs1 + imm4]        | rd = memory at (rs1 + imm4) & 0xff  |
| 9      | STORE rd, [rs1 + imm4]       | memory at (rs1 + imm4) & 0xff = rd  |
| 10     | JMP  offset8                 | pc = next pc + 2 * offset8          |
| 11     | BEQZ rd, offset8             | if rd == 0: pc = next pc + 2 * offset8 |
| 12–15  | HALT                         | stop once the pipeline drains       |

`imm4` is sign-extended to 8 bits. For JMP the 8-bit offset sits in
bits 11–4; for BEQZ in bits 7–0. Jumps and branches are resolved in the
execute stage and cost two control stalls.

## Using it as a library

```python
from pathlib import Path

from pipesim.processor import Processor, parse_hex_values

processor = Processor(max_cycles=10_000)
processor.setup(
    parse_hex_values(Path("ICacheData.txt").read_text()),
    parse_hex_values(Path("DCacheData.txt").read_text()),
    parse_hex_values(Path("RegisterData.txt").read_text()),
)
stats = processor.startup()
print(stats.total_instructions, stats.cpi(processor.clock_cycle))
print(processor.report())
processor.output(".")
```

- `Processor(forwarding_enabled=True, max_cycles=None)`: with
  forwarding disabled, decode stalls until pending operands are written
  back. `startup()` raises `CycleLimitExceeded` past `max_cycles`.
- `Processor.cycle()` advances the pipeline by one clock cycle for
  stepping through a program yourself; the latches are in
  `processor.latches` and the registers in `processor.rf.values`.
- `Processor.report()` returns the text written to `Output.txt`;
  `Processor.output(directory)` writes all three files and returns
  their paths.

The stages (`pipesim.decode`, `pipesim.execute`, `pipesim.memory`),
latches and forwarding unit (`pipesim.buffers`) and datapath components
(`pipesim.components`) can also be used on their own.

## What it does not do

There is no assembler: programs must be supplied as hex bytes. The
caches are flat 256-byte memories with no misses or timing of their
own, and addresses outside them raise `IndexError`.