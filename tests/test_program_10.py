from pathlib import Path

from iqra.executor import StaticSystemExecutor
from iqra.interpreter import new_engine

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_10(capsys):
    with open(EXAMPLES / 'program_10.iqra', 'r', encoding='utf-8') as f:
        source = f.read()
    executor = StaticSystemExecutor(files={'notes/b.txt': 'x'}, env={'HOME_DIR': '/home/iqra'})
    runtime = new_engine(executor)
    runtime.run(source)
    out = capsys.readouterr().out.strip().splitlines()
    assert out == ['سطر', '["a.txt", "b.txt"]', '/home/iqra', 'فارغ']
    assert executor.files['notes/a.txt'] == 'سطر'
