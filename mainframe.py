#!/usr/bin/env python3
"""
Launcher da interface terminal (Textual) do sistema de brindes.

Uso:
  python mainframe.py [caminho-do-banco]
"""

import sys

from brindes.adapters.tui import main
from brindes.config import DB_PATH

if __name__ == "__main__":
    print("Iniciando Brindes - Terminal UI...")
    try:
        main(sys.argv[1] if len(sys.argv) > 1 else DB_PATH)
    except KeyboardInterrupt:
        print("\nSaindo do sistema...")
        sys.exit(0)
