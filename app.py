# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db stashkeeper.db
  python app.py produto importar produtos.xlsx --categoria Limpeza
  python app.py entrada P001 2,5 --unidade kg
  python app.py saida P001 500 --unidade g --colaborador F001
  python app.py integridade --corrigir
"""

from stashkeeper.adapters.cli import main

if __name__ == "__main__":
    main()
