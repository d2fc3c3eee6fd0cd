from __future__ import annotations

from typing import Any, Dict, List, Optional
from pathlib import Path

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical, ScrollableContainer
from textual.widgets import (
    Button, Header, Footer, Static, Tree, Input, DataTable, Label, Select
)
from textual.screen import ModalScreen, Screen


from stashkeeper.config import DB_PATH
from stashkeeper.adapters.parsers import parse_quantidade_positiva
from stashkeeper.domain.exceptions import StashKeeperError
from stashkeeper.domain.policies import status_estoque
from stashkeeper.domain.unidades import (
    ENTRADA,
    SAIDA,
    UNIDADE_PADRAO,
    format_quantidade,
    related_units,
    validate_stock_for_exit,
)
from stashkeeper.infra.logger import LOGS_DIR, ENABLE_OUTPUT, ENABLE_LOGGING, log_system_event, get_log_summary
from stashkeeper.infra.migrations import apply_migrations
from stashkeeper.infra.views import create_views
from stashkeeper.infra.repositories import FuncionarioRepo, MovimentacaoRepo, ProdutoRepo
from stashkeeper.usecases.relatorios import (
    relatorio_estoque_baixo,
    relatorio_movimentacoes,
    relatorio_saidas_por_funcionario,
    resumo_dashboard,
)
from stashkeeper.usecases.registrar_movimentacao import run_registrar_movimentacao, run_movimentacao_lote
from stashkeeper.usecases.editar_movimentacao import run_editar_movimentacao
from stashkeeper.usecases.excluir_movimentacao import run_excluir_movimentacao
from stashkeeper.usecases.verificar_integridade import run_verificar_integridade
from stashkeeper.usecases.cadastros import run_importar_funcionarios, run_importar_produtos


_ROTULO_STATUS = {"CRITICO": "🔴 Crítico", "BAIXO": "🟡 Baixo", "NORMAL": "🟢 Normal", "VERIFICAR": "⚪ Verificar"}


class OutputDataTableScreen(Screen):
    """Screen to display a DataTable with database/query results."""
    BINDINGS = [
        ("escape", "app.pop_screen", "Back"),
        ("q", "app.pop_screen", "Back"),
    ]

    def __init__(self, title: str, columns: list, rows: list) -> None:
        super().__init__()
        self.title = title
        self.columns = columns
        self.rows = rows

    def compose(self) -> ComposeResult:
        yield Header()
        with ScrollableContainer():
            yield Static(f"📋 {self.title}", classes="output-title")
            dt = DataTable(zebra_stripes=True)
            dt.add_columns(*self.columns)
            for row in self.rows:
                dt.add_row(*[str(cell) if cell is not None else "" for cell in row])
            yield dt
        yield Footer()


class StatusDisplay(Static):
    """Display current system status."""

    def __init__(self, db_path: str = DB_PATH) -> None:
        super().__init__()
        self.db_path = db_path
        self.refresh_status()

    def refresh_status(self) -> None:
        """Update the status display with database, logging and stock info."""
        db_file = Path(self.db_path)
        status_info = []

        if db_file.exists():
            size_mb = db_file.stat().st_size / (1024 * 1024)
            status_info.append(f"✅ Database: {self.db_path} ({size_mb:.1f}MB)")
            try:
                resumo = resumo_dashboard(db_path=self.db_path)
                status_info.append(
                    f"📦 Produtos: {resumo['produtos']}  "
                    f"🔴 Críticos: {resumo['criticos']}  🟡 Baixos: {resumo['baixos']}"
                )
                status_info.append(
                    f"📥 Entradas ({resumo['dias']}d): {resumo['entradas_periodo']}  "
                    f"📤 Saídas ({resumo['dias']}d): {resumo['saidas_periodo']}"
                )
            except StashKeeperError as e:
                status_info.append(f"⚠️ Resumo indisponível: {e.message}")
        else:
            status_info.append(f"❌ Database: {self.db_path} (Not Found)")

        status_info.append("✅ Logging: Ativo" if ENABLE_LOGGING else "❌ Logging: Desativado")
        status_info.append("✅ Output: Ativo" if ENABLE_OUTPUT else "❌ Output: Desativado")

        self.update("\n".join(status_info))


class MenuTreeWidget(Tree):
    """Main navigation tree widget."""

    def __init__(self) -> None:
        super().__init__("📦 StashKeeperPro - Menu Principal")
        self.setup_menu_tree()

    def setup_menu_tree(self) -> None:
        """Setup the menu tree structure."""
        mov_node = self.root.add("🔁 Movimentação", data="movimentacao")
        mov_node.add_leaf("⬇️ Nova Entrada", data="entrada")
        mov_node.add_leaf("⬆️ Nova Saída", data="saida")
        mov_node.add_leaf("✏️ Editar Movimentação", data="editar")
        mov_node.add_leaf("🗑️ Excluir Movimentação", data="excluir")
        mov_node.add_leaf("📄 Movimentações em Lote (XLSX)", data="mov-lote")

        cad_node = self.root.add("🗃️ Cadastros", data="cadastros")
        cad_node.add_leaf("📦 Ver Produtos", data="ver-produtos")
        cad_node.add_leaf("👷 Ver Colaboradores", data="ver-funcionarios")
        cad_node.add_leaf("🕘 Histórico", data="ver-historico")
        cad_node.add_leaf("📥 Importar Produtos (XLSX)", data="importar-produtos")
        cad_node.add_leaf("📥 Importar Colaboradores (XLSX)", data="importar-funcionarios")

        reports_node = self.root.add("📊 Relatórios", data="reports")
        reports_node.add_leaf("⚠️ Estoque Baixo", data="rel-estoque-baixo")
        reports_node.add_leaf("📅 Movimentações por Período", data="rel-movimentacoes")
        reports_node.add_leaf("👷 Saídas por Colaborador", data="rel-saidas-funcionario")

        sys_node = self.root.add("⚙️ Sistema", data="sistema")
        sys_node.add_leaf("🔄 Aplicar Migrações", data="migrate")
        sys_node.add_leaf("🩺 Verificar Integridade", data="integridade")
        sys_node.add_leaf("📋 Ver Logs", data="view-logs")
        sys_node.add_leaf("📊 Resumo dos Logs", data="log-summary")


class MovimentacaoForm(ModalScreen):
    """Diálogo de movimentação: tipo, produto, unidade, quantidade, colaborador e observações.

    O seletor de unidade é alimentado por ``related_units`` da unidade do
    produto. A quantidade e o estoque disponível (saídas novas) são validados
    antes de fechar o diálogo; em modo edição a reconciliação fica com o caso
    de uso.
    """

    BINDINGS = [
        ("escape", "app.pop_screen", "Cancel"),
        ("ctrl+s", "save", "Save"),
    ]

    def __init__(self, tipo: str = ENTRADA, movimento: Optional[Dict[str, Any]] = None,
                 db_path: str = DB_PATH) -> None:
        super().__init__()
        self.tipo = tipo
        self.movimento = movimento
        self.db_path = db_path
        self.produto: Optional[Dict[str, Any]] = None
        self.funcionario_code = ""
        self.unidade_inicial = UNIDADE_PADRAO
        if movimento:
            self.tipo = movimento["type"]
            self.produto = ProdutoRepo(db_path).get(movimento["product_id"])
            if movimento.get("employee_id"):
                func = FuncionarioRepo(db_path).get(movimento["employee_id"])
                self.funcionario_code = func["code"] if func else ""
            if any(value == movimento.get("unit") for _, value in self._unit_options()):
                self.unidade_inicial = movimento["unit"]

    def _unit_options(self) -> List[tuple]:
        if not self.produto:
            return [("Unidade do produto (padrão)", UNIDADE_PADRAO)]
        return [(op.label, op.value) for op in related_units(self.produto["unit"])]

    def compose(self) -> ComposeResult:
        titulo = "✏️ Editar Movimentação" if self.movimento else (
            "⬆️ Nova Saída" if self.tipo == SAIDA else "⬇️ Nova Entrada"
        )
        mov = self.movimento or {}
        with Container(id="movimentacao-modal"):
            yield Static(titulo, classes="modal-title")
            with Vertical():
                yield Label("Tipo:")
                yield Select(
                    [("Entrada", ENTRADA), ("Saída", SAIDA)],
                    value=self.tipo, allow_blank=False, id="tipo-select",
                )
                yield Label("Código do produto:")
                yield Input(
                    value=self.produto["code"] if self.produto else "",
                    placeholder="P001", id="produto-input", disabled=bool(self.movimento),
                )
                yield Static(self._produto_info(), id="produto-info")
                yield Label("Unidade:")
                yield Select(self._unit_options(), value=self.unidade_inicial, allow_blank=False, id="unidade-select")
                yield Label("Quantidade:")
                yield Input(
                    value=str(mov.get("quantity", "")) if mov else "",
                    placeholder="0,5", id="quantidade-input",
                )
                yield Label("Colaborador (código, apenas saídas):")
                yield Input(value=self.funcionario_code, placeholder="F001", id="funcionario-input")
                yield Label("Observações:")
                yield Input(value=mov.get("notes") or "", id="notes-input")
                with Horizontal():
                    yield Button("💾 Salvar", variant="primary", id="save-btn")
                    yield Button("❌ Cancelar", id="cancel-btn")

    def _produto_info(self) -> str:
        if not self.produto:
            return "Produto não selecionado"
        p = self.produto
        return f"{p['name']} — estoque: {format_quantidade(p['quantity'], p['unit'])} {p['unit']}"

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "produto-input" or self.movimento:
            return
        code = event.value.strip()
        self.produto = ProdutoRepo(self.db_path).get_by_code(code) if code else None
        self.query_one("#produto-info", Static).update(self._produto_info())
        select = self.query_one("#unidade-select", Select)
        select.set_options(self._unit_options())
        select.value = UNIDADE_PADRAO

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-btn":
            self.action_save()
        elif event.button.id == "cancel-btn":
            self.app.pop_screen()

    def action_save(self) -> None:
        if not self.produto:
            self.notify("❌ Informe um produto válido!", severity="warning")
            return
        tipo = self.query_one("#tipo-select", Select).value
        unidade = self.query_one("#unidade-select", Select).value
        try:
            qtd = parse_quantidade_positiva(self.query_one("#quantidade-input", Input).value)
        except StashKeeperError as e:
            self.notify(f"❌ {e.message}", severity="warning")
            return
        if tipo == SAIDA and not self.movimento:
            validacao = validate_stock_for_exit(self.produto["quantity"], qtd, unidade, self.produto["unit"])
            if not validacao.valid:
                self.notify(f"❌ {validacao.message}", severity="warning")
                return
        self.dismiss({
            "movement_id": self.movimento["id"] if self.movimento else None,
            "produto": self.produto["code"],
            "tipo": tipo,
            "quantidade": qtd,
            "unidade": unidade,
            "funcionario": self.query_one("#funcionario-input", Input).value.strip() or None,
            "notes": self.query_one("#notes-input", Input).value,
        })


class IdInputForm(ModalScreen):
    """Modal form asking for a movement id."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Cancel"),
    ]

    def __init__(self, operation: str, title: str) -> None:
        super().__init__()
        self.operation = operation
        self.title = title
        self.id_input: Optional[Input] = None

    def compose(self) -> ComposeResult:
        with Container(id="file-input-modal"):
            yield Static(f"🔎 {self.title}", classes="modal-title")
            with Vertical():
                yield Label("ID da movimentação:")
                self.id_input = Input(placeholder="42", id="id-input")
                yield self.id_input
                with Horizontal():
                    yield Button("Executar", variant="primary", id="execute-btn")
                    yield Button("Cancelar", id="cancel-btn")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "execute-btn":
            raw = self.id_input.value.strip() if self.id_input else ""
            if not raw.isdigit():
                self.notify("❌ Informe um ID numérico!", severity="warning")
                return
            self.dismiss({"operation": self.operation, "id": int(raw)})
        elif event.button.id == "cancel-btn":
            self.app.pop_screen()


class FileInputForm(ModalScreen):
    """Modal form for file input operations."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Cancel"),
    ]

    def __init__(self, operation: str, title: str) -> None:
        super().__init__()
        self.operation = operation
        self.title = title
        self.file_input: Optional[Input] = None

    def compose(self) -> ComposeResult:
        with Container(id="file-input-modal"):
            yield Static(f"📁 {self.title}", classes="modal-title")

            with Vertical():
                yield Label("Arquivo Excel (.xlsx):")
                self.file_input = Input(placeholder="planilha.xlsx", id="file-input")
                yield self.file_input

                with Horizontal():
                    yield Button("Executar", variant="primary", id="execute-btn")
                    yield Button("Cancelar", id="cancel-btn")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "execute-btn":
            file_path = self.file_input.value.strip() if self.file_input else ""
            if not file_path:
                self.notify("❌ Informe o arquivo!", severity="warning")
                return
            self.dismiss({"operation": self.operation, "file": file_path})
        elif event.button.id == "cancel-btn":
            self.app.pop_screen()


class ReportParametersForm(ModalScreen):
    """Modal form for report period parameters."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Cancel"),
    ]

    def __init__(self, report_type: str) -> None:
        super().__init__()
        self.report_type = report_type
        self.inputs: Dict[str, Input] = {}

    def compose(self) -> ComposeResult:
        with Container(id="report-params-modal"):
            title = {
                "rel-movimentacoes": "📅 Movimentações por Período",
                "rel-saidas-funcionario": "👷 Saídas por Colaborador",
            }.get(self.report_type, "📊 Relatório")

            yield Static(title, classes="modal-title")

            with Vertical():
                yield Label("Início (YYYY-MM-DD, opcional):")
                self.inputs["INI"] = Input(placeholder="2025-01-01", id="ini-input")
                yield self.inputs["INI"]

                yield Label("Fim (YYYY-MM-DD, opcional):")
                self.inputs["FIM"] = Input(placeholder="2025-01-31", id="fim-input")
                yield self.inputs["FIM"]

                if self.report_type == "rel-movimentacoes":
                    yield Label("Tipo:")
                    yield Select(
                        [("Entradas", ENTRADA), ("Saídas", SAIDA)],
                        prompt="Todos", id="tipo-select",
                    )

                with Horizontal():
                    yield Button("📊 Gerar", variant="primary", id="generate-btn")
                    yield Button("❌ Cancelar", id="cancel-btn")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "generate-btn":
            params = {"report": self.report_type}
            for key, inp in self.inputs.items():
                val = inp.value.strip()
                if val:
                    params[key] = val
            if self.report_type == "rel-movimentacoes":
                tipo = self.query_one("#tipo-select", Select).value
                if tipo in (ENTRADA, SAIDA):
                    params["TIPO"] = tipo
            self.dismiss(params)

        elif event.button.id == "cancel-btn":
            self.app.pop_screen()


class OutputScreen(Screen):
    """Screen to display command output."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Back"),
        ("q", "app.pop_screen", "Back"),
    ]

    def __init__(self, title: str, content: str) -> None:
        super().__init__()
        self.title = title
        self.content = content

    def compose(self) -> ComposeResult:
        yield Header()

        with ScrollableContainer():
            yield Static(f"📋 {self.title}", classes="output-title")
            yield Static(self.content, markup=False)

        yield Footer()


class StashKeeperApp(App):

    """Main TUI Application for StashKeeperPro."""

    CSS = """
    Screen {
        background: #001122;
    }

    .modal-title {
        background: #003366;
        color: #ffffff;
        text-align: center;
        padding: 1;
        margin-bottom: 1;
    }

    .output-title {
        background: #004488;
        color: #ffffff;
        text-align: center;
        padding: 1;
        margin-bottom: 1;
    }

    Container#movimentacao-modal {
        background: #112233;
        border: solid #00aaff;
        width: 70;
        height: auto;
        margin: 2;
    }

    Container#file-input-modal {
        background: #112233;
        border: solid #00aaff;
        width: 60;
        height: 15;
        margin: 2;
    }

    Container#report-params-modal {
        background: #112233;
        border: solid #00aaff;
        width: 60;
        height: 25;
        margin: 2;
    }

    Tree {
        background: #001a33;
        color: #ccddff;
    }

    StatusDisplay {
        background: #003366;
        color: #ffffff;
        padding: 1;
    }

    Button {
        margin: 1;
    }
    """

    TITLE = "📦 StashKeeperPro - Terminal UI"
    BINDINGS = [
        ("q", "quit", "Quit"),
        ("d", "toggle_dark", "Toggle Dark Mode"),
        ("r", "refresh", "Refresh Status"),
    ]

    def __init__(self, db_path: str = DB_PATH) -> None:
        super().__init__()
        self.db_path = db_path
        self.menu_tree: Optional[MenuTreeWidget] = None
        self.status_display: Optional[StatusDisplay] = None

    def compose(self) -> ComposeResult:
        """Compose the main UI layout."""
        yield Header()

        with Horizontal():
            with Container(classes="left-panel"):
                self.menu_tree = MenuTreeWidget()
                yield self.menu_tree

            with Vertical(classes="right-panel"):
                self.status_display = StatusDisplay(self.db_path)
                yield self.status_display

                yield Static("""
📦 **STASHKEEPER PRO**

**Como usar:**
- Use as setas ↑↓ para navegar no menu
- Pressione ENTER para executar uma ação
- Pressione 'r' para atualizar o status
- Pressione 'q' para sair
                """, classes="info-panel")

        yield Footer()

    def on_mount(self) -> None:
        apply_migrations(self.db_path)
        create_views(self.db_path)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        """Handle menu tree node selection."""
        if not event.node.data:
            return
        self.execute_action(event.node.data)

    def execute_action(self, action: str) -> None:
        """Executa a ação selecionada no menu."""
        log_system_event("tui_action_start", {"action": action})

        try:
            # Movimentação
            if action == "entrada":
                self.push_screen(MovimentacaoForm(ENTRADA, db_path=self.db_path), self.on_movimentacao_result)
            elif action == "saida":
                self.push_screen(MovimentacaoForm(SAIDA, db_path=self.db_path), self.on_movimentacao_result)
            elif action == "editar":
                self.push_screen(IdInputForm(action, "Editar Movimentação"), self.on_id_input_result)
            elif action == "excluir":
                self.push_screen(IdInputForm(action, "Excluir Movimentação"), self.on_id_input_result)
            elif action in ("mov-lote", "importar-produtos", "importar-funcionarios"):
                titulos = {
                    "mov-lote": "Movimentações em Lote (XLSX)",
                    "importar-produtos": "Importar Produtos (XLSX)",
                    "importar-funcionarios": "Importar Colaboradores (XLSX)",
                }
                self.push_screen(FileInputForm(action, titulos[action]), self.on_file_input_result)

            # Cadastros
            elif action == "ver-produtos":
                self.show_produtos()
            elif action == "ver-funcionarios":
                self.show_funcionarios()
            elif action == "ver-historico":
                self.show_historico()

            # Relatórios
            elif action == "rel-estoque-baixo":
                self.run_report(action, {})
            elif action in ("rel-movimentacoes", "rel-saidas-funcionario"):
                self.push_screen(ReportParametersForm(action), self.on_report_params_result)

            # Sistema
            elif action == "migrate":
                apply_migrations(self.db_path)
                create_views(self.db_path)
                self.notify("✅ Migrações aplicadas!")
            elif action == "integridade":
                self.show_integridade()
            elif action == "view-logs":
                self.show_log_content("transactions")
            elif action == "log-summary":
                self.show_log_summary()

        except StashKeeperError as e:
            self.notify(f"❌ Erro: {e.message}", severity="error")

    # -----------------------
    # movimentações
    # -----------------------

    def on_movimentacao_result(self, dados: Optional[Dict[str, Any]]) -> None:
        if not dados:
            return
        try:
            if dados.get("movement_id"):
                rec = run_editar_movimentacao(
                    dados["movement_id"],
                    tipo=dados["tipo"],
                    quantidade=dados["quantidade"],
                    unidade=dados["unidade"],
                    funcionario=dados["funcionario"],
                    notes=dados["notes"],
                    db_path=self.db_path,
                )
                msg = "✅ Movimentação atualizada"
            else:
                rec = run_registrar_movimentacao(
                    produto=dados["produto"],
                    tipo=dados["tipo"],
                    quantidade=dados["quantidade"],
                    unidade=dados["unidade"],
                    funcionario=dados["funcionario"],
                    notes=dados["notes"],
                    db_path=self.db_path,
                )
                msg = "✅ Saída registrada" if rec["type"] == SAIDA else "✅ Entrada registrada"
            self.notify(f"{msg}: estoque {format_quantidade(rec['product_quantity'], rec['product_unit'])} {rec['product_unit']}")
            self.action_refresh()
        except StashKeeperError as e:
            self.notify(f"❌ {e.message}", severity="error")

    def on_id_input_result(self, result: Optional[Dict[str, Any]]) -> None:
        if not result:
            return
        try:
            if result["operation"] == "editar":
                mov = MovimentacaoRepo(self.db_path).get(result["id"])
                if mov is None or mov.get("deleted"):
                    self.notify(f"❌ Movimentação não encontrada: {result['id']}", severity="error")
                    return
                self.push_screen(MovimentacaoForm(movimento=mov, db_path=self.db_path), self.on_movimentacao_result)
            elif result["operation"] == "excluir":
                rec = run_excluir_movimentacao(result["id"], db_path=self.db_path)
                self.notify(f"✅ Movimentação {rec['id']} excluída")
                self.action_refresh()
        except StashKeeperError as e:
            self.notify(f"❌ {e.message}", severity="error")

    def on_file_input_result(self, result: Optional[Dict[str, str]]) -> None:
        """Handle file input form result."""
        if not result or "file" not in result:
            return
        file_path = result["file"]
        if not Path(file_path).exists():
            self.push_screen(OutputScreen("Arquivo não encontrado", f"Arquivo '{file_path}' não existe."))
            return
        try:
            operation = result["operation"]
            if operation == "mov-lote":
                resultado = run_movimentacao_lote(file_path, self.db_path)
                rows = [["Total", resultado["total"]], ["Sucessos", resultado["sucessos"]]]
                rows += [[f"Linha {e['linha']}", e["mensagem"]] for e in resultado["erros"]]
            elif operation == "importar-produtos":
                resultado = run_importar_produtos(file_path, db_path=self.db_path)
                rows = [["Total", resultado["total"]], ["Inseridos", resultado["inseridos"]],
                        ["Atualizados", resultado["atualizados"]]]
            else:
                resultado = run_importar_funcionarios(file_path, db_path=self.db_path)
                rows = [["Total", resultado["total"]], ["Inseridos", resultado["inseridos"]],
                        ["Atualizados", resultado["atualizados"]]]
            self.push_screen(OutputDataTableScreen(f"{resultado['tipo']} Importados", ["Campo", "Valor"], rows))
            self.action_refresh()
        except StashKeeperError as e:
            self.push_screen(OutputScreen("Erro ao importar arquivo", e.message))

    # -----------------------
    # consultas e relatórios
    # -----------------------

    def show_produtos(self) -> None:
        produtos = ProdutoRepo(self.db_path).get_all()
        if not produtos:
            self.push_screen(OutputScreen("Produtos", "Nenhum produto cadastrado."))
            return
        rows = [
            [
                p["code"], p["name"], p["unit"],
                format_quantidade(p["quantity"], p["unit"]),
                format_quantidade(p["min_quantity"], p["unit"]),
                _ROTULO_STATUS[status_estoque(p["quantity"], p["min_quantity"])],
            ]
            for p in produtos
        ]
        self.push_screen(OutputDataTableScreen(
            "Produtos Cadastrados", ["Código", "Nome", "Unidade", "Quantidade", "Mínimo", "Status"], rows
        ))

    def show_funcionarios(self) -> None:
        funcs = FuncionarioRepo(self.db_path).get_all()
        rows = [[f["code"], f["name"], f["role"] or "", "sim" if f["active"] else "não"] for f in funcs]
        self.push_screen(OutputDataTableScreen("Colaboradores", ["Código", "Nome", "Cargo", "Ativo"], rows))

    def show_historico(self, limite: int = 100) -> None:
        movs = MovimentacaoRepo(self.db_path).historico(limite=limite)
        rows = [
            [
                m["id"], m["created_at"], "Saída" if m["type"] == SAIDA else "Entrada",
                f"{m['product_code']} - {m['product_name']}",
                f"{format_quantidade(m['quantity'], m['unit'])} {m['unit']}",
                m.get("employee_name") or "", m.get("notes") or "",
            ]
            for m in movs
        ]
        self.push_screen(OutputDataTableScreen(
            "Histórico", ["ID", "Data", "Tipo", "Produto", "Quantidade", "Colaborador", "Obs"], rows
        ))

    def show_integridade(self) -> None:
        res = run_verificar_integridade(db_path=self.db_path)
        rows = [
            [
                r["code"], r["name"],
                format_quantidade(r["quantidade_gravada"], r["unit"]),
                format_quantidade(r["quantidade_calculada"], r["unit"]),
                "✅" if r["consistente"] else "❌",
            ]
            for r in res["produtos"]
        ]
        self.push_screen(OutputDataTableScreen(
            f"Integridade ({res['inconsistentes']} inconsistente(s))",
            ["Código", "Nome", "Gravado", "Calculado", "OK"], rows,
        ))

    def run_report(self, report_type: str, params: Dict[str, str]) -> None:
        try:
            if report_type == "rel-estoque-baixo":
                resultado = relatorio_estoque_baixo(db_path=self.db_path)
                titulo = "Estoque Baixo"
            elif report_type == "rel-movimentacoes":
                resultado = relatorio_movimentacoes(
                    inicio=params.get("INI"), fim=params.get("FIM"), tipo=params.get("TIPO"), db_path=self.db_path
                )
                titulo = "Movimentações"
            elif report_type == "rel-saidas-funcionario":
                resultado = relatorio_saidas_por_funcionario(
                    inicio=params.get("INI"), fim=params.get("FIM"), db_path=self.db_path
                )
                titulo = "Saídas por Colaborador"
            else:
                return
            colunas, rows, msg = resultado
            if rows:
                self.push_screen(OutputDataTableScreen(titulo, colunas, rows))
            else:
                self.push_screen(OutputScreen(titulo, msg or "Nenhum dado encontrado."))
        except StashKeeperError as e:
            self.notify(f"❌ Erro ao gerar relatório: {e.message}", severity="error")

    def on_report_params_result(self, params: Optional[Dict[str, str]]) -> None:
        """Handle report parameters form result."""
        if params:
            self.run_report(params["report"], params)

    def action_refresh(self) -> None:
        """Refresh the status display."""
        if self.status_display:
            self.status_display.refresh_status()

    def action_toggle_dark(self) -> None:
        """Toggle dark mode."""
        self.theme = "textual-light" if self.theme == "textual-dark" else "textual-dark"

    def show_log_content(self, log_type: str) -> None:
        """Show the content of a specific log type."""
        log_system_event("view_logs", {"log_type": log_type})
        content = get_log_summary(log_type, lines=500)
        title_map = {
            "transactions": "📋 Logs de Transações",
            "movimentacoes": "🔁 Logs de Movimentações",
            "database": "🗃️ Logs do Banco de Dados",
            "system": "⚙️ Logs do Sistema",
        }
        self.push_screen(OutputScreen(title_map.get(log_type, f"📋 Logs - {log_type}"), content))

    def show_log_summary(self) -> None:
        """Show a summary of all log activity."""
        log_system_event("view_log_summary")
        summary_text = "📊 **RESUMO DOS LOGS DO SISTEMA**\n\n"
        log_files = {
            "Transações": "transactions.log",
            "Movimentações": "movimentacoes.log",
            "Banco de Dados": "database.log",
            "Sistema": "system.log",
        }
        for name, filename in log_files.items():
            log_path = Path(LOGS_DIR) / filename
            if log_path.exists():
                size_kb = log_path.stat().st_size / 1024
                with open(log_path, 'r', encoding='utf-8') as f:
                    lines = len(f.readlines())
                summary_text += f"✅ {name}: {lines} linhas ({size_kb:.1f} KB)\n"
            else:
                summary_text += f"❌ {name}: Arquivo não encontrado\n"
        summary_text += f"\n📁 Diretório de logs: {LOGS_DIR}\n"
        self.push_screen(OutputScreen("Resumo dos Logs", summary_text))


def main() -> None:
    """Run the StashKeeperPro TUI application."""
    app = StashKeeperApp()
    app.run()


if __name__ == "__main__":
    main()
