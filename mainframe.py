# mainframe.py
"""
Entrypoint da interface de terminal (Textual).

Uso:
  python mainframe.py
  STASHKEEPER_DB=estoque.db python mainframe.py
"""

import sys

try:
    from stashkeeper.adapters.mainframe_tui import main
except ImportError as e:
    print(f"❌ Erro ao importar o TUI: {e}")
    print("📦 Instale o projeto com: pip install -e .")
    sys.exit(1)

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n👋 Saindo do sistema...")
