from pathlib import Path

from iqra.executor import StaticSystemExecutor
from iqra.interpreter import new_engine

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_5(capsys):
    with open(EXAMPLES / 'program_5.iqra', 'r', encoding='utf-8') as f:
        source = f.read()
    runtime = new_engine(StaticSystemExecutor())
    runtime.run(source)
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ['أحمد', '["الاسم", "العمر", "المدينة"]', '21', 'فارغ']
