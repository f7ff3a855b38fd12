from pathlib import Path

from iqra.executor import StaticSystemExecutor
from iqra.interpreter import new_engine

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_4(capsys):
    with open(EXAMPLES / 'program_4.iqra', 'r', encoding='utf-8') as f:
        source = f.read()
    runtime = new_engine(StaticSystemExecutor())
    runtime.run(source)
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ['[1, 4, 9, 16, 25]', '55', '11', '25 1']
