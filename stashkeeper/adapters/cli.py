# stashkeeper/adapters/cli.py
"""
CLI do StashKeeperPro (Typer).

Comandos principais:
- migrate                        -> aplica migrações e cria views
- unidades <unidade>             -> opções de unidade de um produto
- converter <valor> <de> <para>  -> converte uma quantidade
- entrada / saida                -> registra uma movimentação
- lote <xlsx>                    -> registra movimentações a partir de um XLSX
- editar / excluir               -> altera ou exclui uma movimentação
- historico                      -> lista movimentações
- integridade [--corrigir]       -> recalcula o estoque pelo histórico
- produto / categoria / funcionario -> cadastros
- rel                            -> relatórios
- tui                            -> interface terminal
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Optional, List, Dict, Any

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from stashkeeper.config import DB_PATH, DEFAULTS
from stashkeeper.adapters.parsers import parse_quantidade
from stashkeeper.domain.exceptions import StashKeeperError
from stashkeeper.domain.policies import status_estoque
from stashkeeper.domain.unidades import (
    UNIDADE_PADRAO,
    convert_to_base,
    format_quantidade,
    full_unit_name,
    normalize_tipo,
    normalize_unit,
    related_units,
)
from stashkeeper.infra.migrations import apply_migrations
from stashkeeper.infra.views import create_views
from stashkeeper.infra.repositories import MovimentacaoRepo
from stashkeeper.usecases.registrar_movimentacao import (
    run_registrar_movimentacao,
    run_movimentacao_lote,
    resolve_funcionario,
    resolve_produto,
)
from stashkeeper.usecases.editar_movimentacao import run_editar_movimentacao
from stashkeeper.usecases.excluir_movimentacao import run_excluir_movimentacao
from stashkeeper.usecases.verificar_integridade import run_verificar_integridade
from stashkeeper.usecases import cadastros
from stashkeeper.usecases.relatorios import (
    relatorio_estoque_baixo,
    relatorio_movimentacoes,
    relatorio_saidas_por_funcionario,
    resumo_dashboard,
)


app = typer.Typer(help="StashKeeperPro — CLI")
console = Console()


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    """Fallback para impressão de JSON quando necessário."""
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


@contextmanager
def _erros():
    """Converte erros do domínio em mensagem vermelha e código de saída 1."""
    try:
        yield
    except StashKeeperError as e:
        console.print(f"[bold red]Erro:[/] {e.message}")
        raise typer.Exit(code=1)


def _fmt(val: Any) -> str:
    if isinstance(val, float):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return "" if val is None else str(val)


def _status_markup(status: str) -> str:
    cores = {"CRITICO": "bold red", "BAIXO": "bold yellow", "NORMAL": "bold green"}
    cor = cores.get(status)
    return f"[{cor}]{status}[/]" if cor else status


def _display_table(data: Any, title: str = "Resultado") -> None:
    """Exibe os dados em tabelas formatadas usando Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    # Relatórios: (colunas, linhas, mensagem)
    if isinstance(data, tuple) and len(data) == 3:
        columns, rows, msg = data
        if not rows:
            console.print(Panel(msg or "Nenhum dado encontrado", title=title, border_style="yellow"))
            return
        table = Table(title=title, box=box.ROUNDED)
        for col in columns:
            if col in ("Quantidade", "Mínimo", "Total", "Retiradas"):
                table.add_column(col, justify="right")
            else:
                table.add_column(col)
        for row in rows:
            values = [_status_markup(v) if col == "Status" else _fmt(v) for col, v in zip(columns, row)]
            table.add_row(*values)
        console.print(table)
        return

    # Lista de itens
    if isinstance(data, list) and isinstance(data[0], dict):
        table = Table(title=title, box=box.ROUNDED)
        columns = list(data[0].keys())
        for column in columns:
            if column.lower() in ("quantity", "min_quantity", "quantidade", "diferenca"):
                table.add_column(column, justify="right")
            else:
                table.add_column(column)
        for row in data:
            table.add_row(*[_fmt(row.get(col, "")) for col in columns])
        console.print(table)
        return

    # Movimentação única
    if isinstance(data, dict) and "product_quantity" in data:
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Campo")
        table.add_column("Valor")
        table.add_row("ID", str(data.get("id", "")))
        if data.get("product_code"):
            table.add_row("Produto", f"{data['product_code']} - {data.get('product_name', '')}")
        if data.get("type"):
            table.add_row("Tipo", "Saída" if data["type"] == "saida" else "Entrada")
        if data.get("quantity") is not None:
            table.add_row("Quantidade", f"{format_quantidade(data['quantity'], data.get('unit') or '')} {data.get('unit') or ''}")
        if data.get("employee_name"):
            table.add_row("Colaborador", data["employee_name"])
        if data.get("notes"):
            table.add_row("Observações", data["notes"])
        if "quantidade_anterior" in data:
            table.add_row("Estoque anterior", _fmt(float(data["quantidade_anterior"])))
        table.add_row("Estoque atual", _fmt(float(data["product_quantity"])))
        console.print(table)
        return

    # Operações em lote / importações
    if isinstance(data, dict) and "total" in data and "tipo" in data:
        panel_content = [f"Total de registros: {data['total']}"]
        if "sucessos" in data:
            panel_content.append(f"Processados com sucesso: {data['sucessos']}")
        if "inseridos" in data:
            panel_content.append(f"Inseridos: {data['inseridos']}")
            panel_content.append(f"Atualizados: {data['atualizados']}")
        if data.get("erros"):
            panel_content.append(f"Erros: {len(data['erros'])}")
        console.print(Panel("\n".join(panel_content), title=f"{data['tipo']} — {title}"))

        if data.get("erros"):
            erro_table = Table(title="Erros Encontrados")
            erro_table.add_column("Linha")
            erro_table.add_column("Erro")
            for erro in data["erros"]:
                erro_table.add_row(str(erro.get("linha", "?")), erro.get("mensagem", "Erro desconhecido"))
            console.print(erro_table)
        return

    _print_json(data)


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações e recria as views auxiliares."""
    with _erros():
        apply_migrations(db_path)
        create_views(db_path)
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


# -----------------------
# unidades
# -----------------------

@app.command("unidades")
def cmd_unidades(unidade: str = typer.Argument(..., help="Unidade do produto (ex.: kg, l, rl)")):
    """Lista as unidades aceitas na digitação para um produto."""
    table = Table(title=f"Unidades para {full_unit_name(unidade)}", box=box.ROUNDED)
    table.add_column("Valor")
    table.add_column("Rótulo")
    table.add_column("Fator", justify="right")
    for op in related_units(unidade):
        table.add_row(op.value, op.label, f"{op.factor:g}")
    console.print(table)


@app.command("converter")
def cmd_converter(
    valor: str = typer.Argument(..., help="Quantidade (vírgula ou ponto decimal)"),
    de: str = typer.Argument(..., help="Unidade digitada"),
    para: str = typer.Argument(..., help="Unidade do produto"),
):
    """Converte uma quantidade para a unidade do produto."""
    with _erros():
        v = parse_quantidade(valor)
    res = convert_to_base(v, de, para)
    typer.echo(f"{format_quantidade(v, de)} {normalize_unit(de)} = {format_quantidade(res, para)} {normalize_unit(para)}")


# -----------------------
# movimentações
# -----------------------

def _movimentar(tipo: str, produto: str, quantidade: str, unidade: str,
                funcionario: Optional[str], notes: Optional[str], db_path: str) -> None:
    with _erros():
        apply_migrations(db_path)
        rec = run_registrar_movimentacao(
            produto=produto,
            tipo=tipo,
            quantidade=quantidade,
            unidade=unidade,
            funcionario=funcionario,
            notes=notes,
            db_path=db_path,
        )
    _display_table(rec, title="Saída Registrada" if tipo == "saida" else "Entrada Registrada")


@app.command("entrada")
def cmd_entrada(
    produto: str = typer.Argument(..., help="Código do produto"),
    quantidade: str = typer.Argument(..., help="Quantidade (vírgula ou ponto decimal)"),
    unidade: str = typer.Option(UNIDADE_PADRAO, "--unidade", "-u", help="Unidade digitada (default = do produto)"),
    notes: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma entrada de estoque."""
    _movimentar("entrada", produto, quantidade, unidade, None, notes, db_path)


@app.command("saida")
def cmd_saida(
    produto: str = typer.Argument(..., help="Código do produto"),
    quantidade: str = typer.Argument(..., help="Quantidade (vírgula ou ponto decimal)"),
    unidade: str = typer.Option(UNIDADE_PADRAO, "--unidade", "-u", help="Unidade digitada (default = do produto)"),
    funcionario: Optional[str] = typer.Option(None, "--colaborador", "-c", help="Código do colaborador"),
    notes: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma saída de estoque."""
    _movimentar("saida", produto, quantidade, unidade, funcionario, notes, db_path)


@app.command("lote")
def cmd_lote(
    path: str = typer.Argument(..., help="Caminho do XLSX de MOVIMENTAÇÕES"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra movimentações em lote a partir de um XLSX."""
    with _erros():
        apply_migrations(db_path)
        info = run_movimentacao_lote(path, db_path=db_path)
    _display_table(info, title="Processamento em Lote")


@app.command("editar")
def cmd_editar(
    movement_id: int = typer.Argument(..., help="ID da movimentação"),
    tipo: Optional[str] = typer.Option(None, "--tipo", help="entrada | saida"),
    quantidade: Optional[str] = typer.Option(None, "--quantidade", "-q"),
    unidade: Optional[str] = typer.Option(None, "--unidade", "-u"),
    funcionario: Optional[str] = typer.Option(None, "--colaborador", "-c", help="Código do colaborador"),
    notes: Optional[str] = typer.Option(None, "--obs", help="Observações"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Edita uma movimentação, reconciliando o estoque do produto."""
    kwargs: Dict[str, Any] = {}
    if funcionario is not None:
        kwargs["funcionario"] = funcionario
    if notes is not None:
        kwargs["notes"] = notes
    with _erros():
        apply_migrations(db_path)
        rec = run_editar_movimentacao(
            movement_id, tipo=tipo, quantidade=quantidade, unidade=unidade, db_path=db_path, **kwargs
        )
    _display_table(rec, title="Movimentação Editada")


@app.command("excluir")
def cmd_excluir(
    movement_id: int = typer.Argument(..., help="ID da movimentação"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pedir confirmação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exclui uma movimentação e reverte seu efeito no estoque."""
    if not yes:
        typer.confirm(f"Excluir a movimentação {movement_id}?", abort=True)
    with _erros():
        apply_migrations(db_path)
        rec = run_excluir_movimentacao(movement_id, db_path=db_path)
    _display_table(rec, title="Movimentação Excluída")


@app.command("historico")
def cmd_historico(
    produto: Optional[str] = typer.Option(None, "--produto", "-p", help="Código do produto"),
    funcionario: Optional[str] = typer.Option(None, "--colaborador", "-c", help="Código do colaborador"),
    tipo: Optional[str] = typer.Option(None, "--tipo", help="entrada | saida"),
    inicio: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    fim: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    limite: int = typer.Option(50, help="Máximo de linhas"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista as movimentações (mais recentes primeiro)."""
    with _erros():
        apply_migrations(db_path)
        prod = resolve_produto(produto, db_path) if produto else None
        func = resolve_funcionario(funcionario, db_path)
        movs = MovimentacaoRepo(db_path).historico(
            inicio=inicio, fim=fim, tipo=normalize_tipo(tipo) if tipo else None,
            product_id=prod["id"] if prod else None,
            employee_id=func["id"] if func else None,
            limite=limite,
        )
    linhas = [
        {
            "id": m["id"],
            "data": m["created_at"],
            "tipo": "Saída" if m["type"] == "saida" else "Entrada",
            "produto": f"{m['product_code']} - {m['product_name']}",
            "quantidade": f"{format_quantidade(m['quantity'], m['unit'])} {m['unit']}",
            "colaborador": m.get("employee_name") or "",
            "obs": m.get("notes") or "",
        }
        for m in movs
    ]
    _display_table(linhas, title="Histórico de Movimentações")


@app.command("integridade")
def cmd_integridade(
    corrigir: bool = typer.Option(False, "--corrigir", help="Regrava o estoque recalculado"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Recalcula o estoque pelo histórico e aponta divergências."""
    with _erros():
        res = run_verificar_integridade(corrigir=corrigir, db_path=db_path)
    divergentes = [r for r in res["produtos"] if not r["consistente"]]
    if not divergentes:
        console.print(f"[bold green]Estoque consistente[/] ({len(res['produtos'])} produtos verificados)")
        return
    _display_table(
        [
            {
                "code": r["code"],
                "name": r["name"],
                "gravado": format_quantidade(r["quantidade_gravada"], r["unit"]),
                "calculado": format_quantidade(r["quantidade_calculada"], r["unit"]),
                "diferenca": r["diferenca"],
            }
            for r in divergentes
        ],
        title="Produtos Inconsistentes",
    )
    if corrigir:
        console.print(f"[bold yellow]{res['corrigidos']} produto(s) corrigido(s).[/]")
    else:
        console.print("[dim]Use --corrigir para regravar o estoque recalculado.[/dim]")


# -----------------------
# cadastros
# -----------------------

produto_app = typer.Typer(help="Cadastro de produtos")
app.add_typer(produto_app, name="produto")


@produto_app.command("add")
def produto_add(
    code: str = typer.Argument(..., help="Código"),
    name: str = typer.Argument(..., help="Nome"),
    unit: str = typer.Option("un", "--unidade", "-u", help="Unidade do produto (un, kg, g, l, ml, rl...)"),
    quantity: str = typer.Option("0", "--quantidade", "-q", help="Quantidade inicial"),
    min_quantity: str = typer.Option("0", "--minimo", "-m", help="Quantidade mínima"),
    categoria: Optional[str] = typer.Option(None, "--categoria", help="Nome da categoria"),
    description: Optional[str] = typer.Option(None, "--descricao"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra um produto."""
    with _erros():
        apply_migrations(db_path)
        prod = cadastros.add_produto(
            code, name, unit=unit, quantity=quantity, min_quantity=min_quantity,
            description=description, categoria=categoria, db_path=db_path,
        )
    typer.echo(f">> Produto {prod['code']} cadastrado (id={prod['id']}).")


@produto_app.command("list")
def produto_list(
    categoria: Optional[str] = typer.Option(None, "--categoria", help="Nome da categoria"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista os produtos com quantidade e status."""
    with _erros():
        apply_migrations(db_path)
        produtos = cadastros.list_produtos(categoria=categoria, db_path=db_path)
    if not produtos:
        console.print(Panel("Nenhum produto cadastrado", title="Produtos", border_style="yellow"))
        return
    table = Table(title="Produtos", box=box.ROUNDED)
    for col in ("ID", "Código", "Nome", "Unidade"):
        table.add_column(col)
    table.add_column("Quantidade", justify="right")
    table.add_column("Mínimo", justify="right")
    table.add_column("Status")
    for p in produtos:
        table.add_row(
            str(p["id"]), p["code"], p["name"], p["unit"],
            format_quantidade(p["quantity"], p["unit"]),
            format_quantidade(p["min_quantity"], p["unit"]),
            _status_markup(status_estoque(p["quantity"], p["min_quantity"])),
        )
    console.print(table)


@produto_app.command("importar")
def produto_importar(
    path: str = typer.Argument(..., help="Caminho do XLSX de PRODUTOS"),
    categoria: Optional[str] = typer.Option(None, "--categoria", help="Categoria aplicada a todas as linhas"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Importa produtos (upsert por código)."""
    with _erros():
        info = cadastros.run_importar_produtos(path, categoria=categoria, db_path=db_path)
    _display_table(info, title="Importação")


categoria_app = typer.Typer(help="Cadastro de categorias")
app.add_typer(categoria_app, name="categoria")


@categoria_app.command("add")
def categoria_add(
    name: str = typer.Argument(..., help="Nome"),
    description: Optional[str] = typer.Option(None, "--descricao"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra uma categoria."""
    with _erros():
        apply_migrations(db_path)
        cat = cadastros.add_categoria(name, description, db_path=db_path)
    typer.echo(f">> Categoria {cat['name']} cadastrada (id={cat['id']}).")


@categoria_app.command("list")
def categoria_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Lista as categorias."""
    with _erros():
        apply_migrations(db_path)
        cats = cadastros.list_categorias(db_path=db_path)
    _display_table([{"id": c["id"], "name": c["name"], "description": c["description"] or ""} for c in cats],
                   title="Categorias")


funcionario_app = typer.Typer(help="Cadastro de colaboradores")
app.add_typer(funcionario_app, name="funcionario")


@funcionario_app.command("add")
def funcionario_add(
    code: str = typer.Argument(..., help="Código / matrícula"),
    name: str = typer.Argument(..., help="Nome"),
    role: Optional[str] = typer.Option(None, "--cargo"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra um colaborador."""
    with _erros():
        apply_migrations(db_path)
        func = cadastros.add_funcionario(code, name, role, db_path=db_path)
    typer.echo(f">> Colaborador {func['code']} cadastrado (id={func['id']}).")


@funcionario_app.command("list")
def funcionario_list(
    ativos: bool = typer.Option(False, "--ativos", help="Somente colaboradores ativos"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista os colaboradores."""
    with _erros():
        apply_migrations(db_path)
        funcs = cadastros.list_funcionarios(somente_ativos=ativos, db_path=db_path)
    _display_table(
        [{"id": f["id"], "code": f["code"], "name": f["name"], "role": f["role"] or "",
          "ativo": "sim" if f["active"] else "não"} for f in funcs],
        title="Colaboradores",
    )


@funcionario_app.command("importar")
def funcionario_importar(
    path: str = typer.Argument(..., help="Caminho do XLSX de COLABORADORES"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Importa colaboradores (upsert por código)."""
    with _erros():
        info = cadastros.run_importar_funcionarios(path, db_path=db_path)
    _display_table(info, title="Importação")


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios de estoque")
app.add_typer(rel_app, name="rel")


@rel_app.command("estoque-baixo")
def rel_estoque_baixo(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Produtos em nível crítico ou baixo."""
    with _erros():
        res = relatorio_estoque_baixo(db_path=db_path)
    _display_table(res, title="Estoque Baixo")


@rel_app.command("movimentacoes")
def rel_movimentacoes(
    inicio: Optional[str] = typer.Option(None, help="YYYY-MM-DD (início)"),
    fim: Optional[str] = typer.Option(None, help="YYYY-MM-DD (fim)"),
    tipo: Optional[str] = typer.Option(None, help="entrada | saida"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Movimentações no período."""
    with _erros():
        res = relatorio_movimentacoes(inicio=inicio, fim=fim, tipo=tipo, db_path=db_path)
    _display_table(res, title="Movimentações")


@rel_app.command("saidas-funcionario")
def rel_saidas_funcionario(
    inicio: Optional[str] = typer.Option(None, help="YYYY-MM-DD (início)"),
    fim: Optional[str] = typer.Option(None, help="YYYY-MM-DD (fim)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Total retirado por colaborador e produto."""
    with _erros():
        res = relatorio_saidas_por_funcionario(inicio=inicio, fim=fim, db_path=db_path)
    _display_table(res, title="Saídas por Colaborador")


@rel_app.command("resumo")
def rel_resumo(
    dias: int = typer.Option(30, help="Janela de movimentações (dias)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Resumo geral do estoque."""
    with _erros():
        res = resumo_dashboard(dias=dias, db_path=db_path)
    linhas: List[str] = [
        f"Produtos: {res['produtos']}",
        f"Categorias: {res['categorias']}",
        f"Colaboradores ativos: {res['colaboradores']}",
        f"[bold red]Críticos: {res['criticos']}[/]",
        f"[bold yellow]Baixos: {res['baixos']}[/]",
        f"Entradas ({res['dias']} dias): {res['entradas_periodo']}",
        f"Saídas ({res['dias']} dias): {res['saidas_periodo']}",
        f"[dim]Tolerância de saída: {DEFAULTS.tolerancia_estoque:g}[/dim]",
    ]
    console.print(Panel("\n".join(linhas), title="Resumo do Estoque"))


@app.command("tui")
def cmd_tui():
    """
    Inicia a Interface Terminal (TUI) interativa do sistema.

    A TUI mostra os produtos, registra movimentações pelo diálogo com
    seletor de unidade e abre os relatórios.
    """
    try:
        from stashkeeper.adapters.mainframe_tui import main as tui_main
        typer.echo("🚀 Iniciando Interface Terminal...")
        tui_main()
    except ImportError:
        typer.echo("❌ TUI não disponível. Instale: pip install textual")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\n👋 Saindo do TUI...")
        raise typer.Exit(0)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
