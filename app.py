# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db brindes.db
  python app.py cadastro
  python app.py login
  python app.py brindes listar
  python app.py pedidos novo BR-001 --quantidade 10
  python app.py pedidos aprovar <id>
"""

from brindes.adapters.cli import main

if __name__ == "__main__":
    main()
