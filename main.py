"""Entry point de desarrollo sin instalar el paquete.

Uso:
- `python main.py chat`
- `python main.py ask "octane get defect 1001"`

El código vive en `src/` (`core`, `adapters`, `cli`); sin `pip install -e .`
Python no lo encuentra, así que se añade al path antes de importar la CLI.
"""

from __future__ import annotations

import sys
from pathlib import Path

_SRC = Path(__file__).resolve().parent / "src"


def main() -> None:
    if str(_SRC) not in sys.path:
        sys.path.insert(0, str(_SRC))

    # Terminales Windows con cp1252 rompen con los bullets del markup de Slack.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
