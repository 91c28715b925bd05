# brindes/adapters/cli.py
"""
CLI do sistema de brindes (Typer).

Comandos principais:
- migrate                     -> aplica migrações e cria views
- cadastro / login / logout   -> conta e sessão do usuário
- whoami / senha              -> usuário atual e troca de senha
- dashboard                   -> painel de gestão
- brindes listar/novo/editar/excluir/importar/categorias/categoria-nova
- mov registrar/listar/exportar
- pedidos novo/listar/aprovar/rejeitar/finalizar/confirmar
- usuarios listar/papel/criar
- logs                        -> final dos arquivos de log (admin)
- tui                         -> interface terminal interativa
"""

from __future__ import annotations

import functools
import json
from typing import Optional, List, Dict, Any

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from brindes.config import DB_PATH, DEFAULTS
from brindes.domain.errors import BrindesError, PreconditionFailed, ValidationError
from brindes.domain.models import USUARIO
from brindes.domain.policies import FILTRO_TODOS, exigir_admin
from brindes.infra.auth import AuthProvider
from brindes.infra.logger import LOG_FILES, get_log_summary
from brindes.infra.migrations import apply_migrations
from brindes.infra.views import create_views
from brindes.infra.repositories import CategoriaRepo, ProdutoRepo
from brindes.usecases.papeis import carregar_contexto
from brindes.usecases.catalogo import (
    atualizar_brinde,
    cadastrar_brinde,
    criar_categoria,
    excluir_brinde,
    importar_brindes,
    listar_brindes,
    listar_categorias,
)
from brindes.usecases.dashboard import resumo_dashboard
from brindes.usecases.movimentacoes import (
    exportar_movimentacoes,
    listar_movimentacoes,
    registrar_movimentacao,
)
from brindes.usecases.pedidos import (
    aprovar_pedido,
    confirmar_recebimento,
    criar_pedido,
    finalizar_pedido,
    listar_pedidos,
    rejeitar_pedido,
)
from brindes.usecases.usuarios import (
    alterar_papel,
    alterar_senha,
    cadastrar_usuario,
    listar_usuarios,
)


app = typer.Typer(help="Brindes — controle de estoque e pedidos")
console = Console()

DB_OPTION = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")

_CORES_STATUS = {
    "normal": "green",
    "baixo": "yellow",
    "sem_estoque": "red",
    "pendente": "yellow",
    "aprovado": "green",
    "rejeitada": "red",
    "finalizado": "cyan",
    "concluido": "blue",
}


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _display_table(
    data: Dict[str, Any] | List[Dict[str, Any]],
    title: str = "Resultado",
    columns: Optional[List[str]] = None,
) -> None:
    """Exibe os dados em tabelas formatadas usando Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    if isinstance(data, list) and isinstance(data[0], dict):
        table = Table(title=title, box=box.ROUNDED)
        cols = columns or list(data[0].keys())
        for column in cols:
            if column in ("quantidade", "estoque_minimo", "total", "linhas"):
                table.add_column(column, justify="right")
            else:
                table.add_column(column)
        for row in data:
            values = []
            for col in cols:
                val = row.get(col, "")
                if col == "status" and val in _CORES_STATUS:
                    values.append(f"[bold {_CORES_STATUS[val]}]{val}[/]")
                elif isinstance(val, list):
                    values.append(", ".join(str(v) for v in val))
                elif val is None:
                    values.append("")
                else:
                    values.append(str(val))
            table.add_row(*values)
        console.print(table)
        return

    # Importação em lote
    if isinstance(data, dict) and "registros" in data and "total" in data:
        titulo = f"{data.get('tipo', 'Registros')} em Lote"
        panel_content = [
            f"Total de registros: {data['total']}",
            f"Processados com sucesso: {data.get('sucessos', 0)}",
        ]
        if data.get("erros"):
            panel_content.append(f"Erros: {len(data['erros'])}")
        console.print(Panel("\n".join(panel_content), title=titulo))
        if data.get("erros"):
            erro_table = Table(title="Erros Encontrados")
            erro_table.add_column("Linha")
            erro_table.add_column("Erro")
            for erro in data["erros"]:
                erro_table.add_row(str(erro.get("linha", "?")), erro.get("mensagem", "Erro desconhecido"))
            console.print(erro_table)
        return

    # Registro único (campo/valor)
    if isinstance(data, dict) and all(not isinstance(v, (list, dict)) for v in data.values()):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Campo")
        table.add_column("Valor")
        for chave, valor in data.items():
            table.add_row(chave, "" if valor is None else str(valor))
        console.print(table)
        return

    _print_json(data)


def _tratar_erros(func):
    """Converte erros do domínio em mensagem e código de saída 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PreconditionFailed as e:
            console.print(f"[bold red]Estoque insuficiente:[/] {e}")
            raise typer.Exit(1)
        except BrindesError as e:
            console.print(f"[bold red]Erro:[/] {e}")
            raise typer.Exit(1)

    return wrapper


def _auth(db_path: str) -> AuthProvider:
    return AuthProvider(db_path)


def _produto_id(codigo: str, db_path: str) -> str:
    produto = ProdutoRepo(db_path).get_by_codigo(codigo)
    if produto is None:
        raise ValidationError(f"Brinde não encontrado: {codigo}")
    return produto["id"]


def _categoria_id(nome: Optional[str], db_path: str) -> Optional[str]:
    if not nome:
        return None
    cat = CategoriaRepo(db_path).get_by_nome(nome)
    if cat is None:
        raise ValidationError(f"Categoria não encontrada: {nome}")
    return cat["id"]


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = DB_OPTION):
    """Aplica migrações e recria as views auxiliares."""
    apply_migrations(db_path)
    create_views(db_path)
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


# -----------------------
# conta e sessão
# -----------------------

@app.command("cadastro")
@_tratar_erros
def cmd_cadastro(
    nome: str = typer.Option(..., prompt=True, help="Nome completo"),
    email: str = typer.Option(..., prompt=True, help="E-mail"),
    senha: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    db_path: str = DB_OPTION,
):
    """Cria uma conta (papel inicial: usuário)."""
    user_id = _auth(db_path).sign_up(email, senha, nome)
    console.print(f"[green]Conta criada.[/] id={user_id}")


@app.command("login")
@_tratar_erros
def cmd_login(
    email: str = typer.Option(..., prompt=True, help="E-mail"),
    senha: str = typer.Option(..., prompt=True, hide_input=True),
    db_path: str = DB_OPTION,
):
    """Abre uma sessão e guarda o token localmente."""
    sessao = _auth(db_path).sign_in(email, senha)
    console.print(f"[green]Login realizado:[/] {sessao.email}")


@app.command("logout")
@_tratar_erros
def cmd_logout(db_path: str = DB_OPTION):
    """Encerra a sessão atual."""
    _auth(db_path).sign_out()
    console.print("Sessão encerrada.")


@app.command("whoami")
@_tratar_erros
def cmd_whoami(db_path: str = DB_OPTION):
    """Mostra o usuário logado e seu papel."""
    auth = _auth(db_path)
    user = auth.current_user()
    if user is None:
        console.print("[yellow]Nenhum usuário logado.[/]")
        raise typer.Exit(1)
    ctx = carregar_contexto(auth)
    _display_table({"id": user.id, "email": user.email, "nome": user.nome, "papel": ctx.papel}, title="Usuário")


@app.command("senha")
@_tratar_erros
def cmd_senha(
    nova: str = typer.Option(..., prompt="Nova senha", hide_input=True),
    confirmacao: str = typer.Option(..., prompt="Confirme a nova senha", hide_input=True),
    db_path: str = DB_OPTION,
):
    """Altera a senha do usuário logado."""
    alterar_senha(_auth(db_path), nova, confirmacao)
    console.print("[green]Senha alterada com sucesso.[/]")


@app.command("dashboard")
@_tratar_erros
def cmd_dashboard(db_path: str = DB_OPTION):
    """Painel de gestão: totais, categorias e alertas de estoque."""
    ctx = carregar_contexto(_auth(db_path))
    res = resumo_dashboard(ctx, db_path=db_path)
    resumo = {k: res[k] for k in ("total_brindes", "estoque_normal", "estoque_baixo", "sem_estoque", "pedidos_pendentes")}
    _display_table(resumo, title="Dashboard")
    _display_table(res["por_categoria"], title="Quantidade por Categoria")
    if res["alertas"]:
        _display_table(res["alertas"], title="Alertas de Estoque")


# -----------------------
# catálogo
# -----------------------

brindes_app = typer.Typer(help="Catálogo de brindes e categorias.")
app.add_typer(brindes_app, name="brindes")

_COLUNAS_BRINDES = ["codigo", "nome", "categoria", "quantidade", "estoque_minimo", "localizacao", "status"]


@brindes_app.command("listar")
@_tratar_erros
def cmd_brindes_listar(
    busca: Optional[str] = typer.Option(None, help="Filtra por nome ou código"),
    categoria: Optional[str] = typer.Option(None, help="Nome da categoria"),
    db_path: str = DB_OPTION,
):
    """Lista os brindes com status de estoque."""
    carregar_contexto(_auth(db_path))
    rows = listar_brindes(busca=busca, categoria_id=_categoria_id(categoria, db_path), db_path=db_path)
    _display_table(rows, title="Brindes", columns=_COLUNAS_BRINDES)


@brindes_app.command("novo")
@_tratar_erros
def cmd_brindes_novo(
    codigo: str = typer.Option(..., prompt=True),
    nome: str = typer.Option(..., prompt=True),
    categoria: Optional[str] = typer.Option(None, help="Nome da categoria"),
    quantidade: int = typer.Option(0, help="Estoque inicial"),
    estoque_minimo: int = typer.Option(0, "--estoque-minimo"),
    localizacao: Optional[str] = typer.Option(None),
    fornecedor: Optional[str] = typer.Option(None),
    descricao: Optional[str] = typer.Option(None),
    db_path: str = DB_OPTION,
):
    """Cadastra um brinde."""
    ctx = carregar_contexto(_auth(db_path))
    rec = cadastrar_brinde(ctx, {
        "codigo": codigo,
        "nome": nome,
        "categoria_id": _categoria_id(categoria, db_path),
        "quantidade": quantidade,
        "estoque_minimo": estoque_minimo,
        "localizacao": localizacao,
        "fornecedor": fornecedor,
        "descricao": descricao,
    }, db_path=db_path)
    _display_table(rec, title="Brinde Cadastrado")


@brindes_app.command("editar")
@_tratar_erros
def cmd_brindes_editar(
    codigo: str = typer.Argument(..., help="Código atual do brinde"),
    novo_codigo: Optional[str] = typer.Option(None, "--novo-codigo"),
    nome: Optional[str] = typer.Option(None),
    categoria: Optional[str] = typer.Option(None),
    estoque_minimo: Optional[int] = typer.Option(None, "--estoque-minimo"),
    localizacao: Optional[str] = typer.Option(None),
    fornecedor: Optional[str] = typer.Option(None),
    descricao: Optional[str] = typer.Option(None),
    db_path: str = DB_OPTION,
):
    """Edita os dados de um brinde (apenas os informados são alterados)."""
    ctx = carregar_contexto(_auth(db_path))
    campos: Dict[str, Any] = {
        "codigo": novo_codigo,
        "nome": nome,
        "estoque_minimo": estoque_minimo,
        "localizacao": localizacao,
        "fornecedor": fornecedor,
        "descricao": descricao,
    }
    campos = {k: v for k, v in campos.items() if v is not None}
    if categoria is not None:
        campos["categoria_id"] = _categoria_id(categoria, db_path)
    if not campos:
        console.print("[yellow]Nada a alterar.[/]")
        return
    rec = atualizar_brinde(ctx, _produto_id(codigo, db_path), campos, db_path=db_path)
    _display_table({k: rec.get(k) for k in ("codigo", "nome", "quantidade", "estoque_minimo", "localizacao", "fornecedor")},
                   title="Brinde Atualizado")


@brindes_app.command("excluir")
@_tratar_erros
def cmd_brindes_excluir(
    codigo: str = typer.Argument(...),
    db_path: str = DB_OPTION,
):
    """Exclui um brinde sem movimentações nem pedidos."""
    ctx = carregar_contexto(_auth(db_path))
    excluir_brinde(ctx, _produto_id(codigo, db_path), db_path=db_path)
    console.print(f"Brinde {codigo} excluído.")


@brindes_app.command("importar")
@_tratar_erros
def cmd_brindes_importar(
    path: str = typer.Argument(..., help="Planilha XLSX/CSV de brindes"),
    db_path: str = DB_OPTION,
):
    """Importa brindes de uma planilha."""
    ctx = carregar_contexto(_auth(db_path))
    info = importar_brindes(ctx, path, db_path=db_path)
    _display_table(info, title="Importação de Brindes")


@brindes_app.command("categorias")
@_tratar_erros
def cmd_categorias(db_path: str = DB_OPTION):
    """Lista as categorias."""
    carregar_contexto(_auth(db_path))
    _display_table(listar_categorias(db_path=db_path), title="Categorias", columns=["nome", "created_at"])


@brindes_app.command("categoria-nova")
@_tratar_erros
def cmd_categoria_nova(
    nome: str = typer.Argument(...),
    db_path: str = DB_OPTION,
):
    """Cria uma categoria."""
    ctx = carregar_contexto(_auth(db_path))
    _display_table(criar_categoria(ctx, nome, db_path=db_path), title="Categoria Criada")


# -----------------------
# movimentações
# -----------------------

mov_app = typer.Typer(help="Entradas e saídas de estoque.")
app.add_typer(mov_app, name="mov")

_COLUNAS_MOV = ["created_at", "tipo", "quantidade", "produto_codigo", "produto_nome", "usuario_nome", "observacao"]


@mov_app.command("registrar")
@_tratar_erros
def cmd_mov_registrar(
    codigo: str = typer.Argument(..., help="Código do brinde"),
    tipo: str = typer.Option(..., help="entrada ou saida"),
    quantidade: int = typer.Option(...),
    observacao: Optional[str] = typer.Option(None),
    db_path: str = DB_OPTION,
):
    """Registra uma entrada ou saída manual."""
    ctx = carregar_contexto(_auth(db_path))
    rec = registrar_movimentacao(ctx, _produto_id(codigo, db_path), tipo, quantidade, observacao, db_path=db_path)
    _display_table(rec, title="Movimentação Registrada")


@mov_app.command("listar")
@_tratar_erros
def cmd_mov_listar(
    limite: int = typer.Option(DEFAULTS.limite_movimentacoes, help="Quantidade máxima de linhas"),
    codigo: Optional[str] = typer.Option(None, help="Filtra por brinde"),
    db_path: str = DB_OPTION,
):
    """Lista as movimentações mais recentes."""
    carregar_contexto(_auth(db_path))
    produto_id = _produto_id(codigo, db_path) if codigo else None
    rows = listar_movimentacoes(limite=limite, produto_id=produto_id, db_path=db_path)
    _display_table(rows, title="Movimentações", columns=_COLUNAS_MOV)


@mov_app.command("exportar")
@_tratar_erros
def cmd_mov_exportar(
    destino: str = typer.Argument(..., help="Arquivo .xlsx ou .csv"),
    db_path: str = DB_OPTION,
):
    """Exporta o histórico de movimentações."""
    carregar_contexto(_auth(db_path))
    _display_table(exportar_movimentacoes(destino, db_path=db_path), title="Exportação")


# -----------------------
# pedidos
# -----------------------

pedidos_app = typer.Typer(help="Pedidos de brindes.")
app.add_typer(pedidos_app, name="pedidos")

_COLUNAS_PEDIDOS = [
    "id", "created_at", "produto_codigo", "produto_nome", "quantidade",
    "solicitante_nome", "status", "motivo", "acoes",
]


@pedidos_app.command("novo")
@_tratar_erros
def cmd_pedido_novo(
    codigo: str = typer.Argument(..., help="Código do brinde"),
    quantidade: int = typer.Option(..., prompt=True),
    motivo: Optional[str] = typer.Option(None),
    db_path: str = DB_OPTION,
):
    """Cria um pedido (fica pendente de aprovação)."""
    ctx = carregar_contexto(_auth(db_path))
    _display_table(criar_pedido(ctx, _produto_id(codigo, db_path), quantidade, motivo, db_path=db_path),
                   title="Pedido Criado")


@pedidos_app.command("listar")
@_tratar_erros
def cmd_pedidos_listar(
    status: str = typer.Option(FILTRO_TODOS, help="Filtro de status (all, pendente, ...)"),
    db_path: str = DB_OPTION,
):
    """Lista os pedidos visíveis ao usuário logado."""
    ctx = carregar_contexto(_auth(db_path))
    res = listar_pedidos(ctx, status=status, db_path=db_path)
    _display_table(res["pedidos"], title="Pedidos", columns=_COLUNAS_PEDIDOS)
    console.print(f"[dim]Filtros disponíveis: {', '.join(res['filtros'])}[/dim]")


def _comando_transicao(nome: str, func, titulo: str, ajuda: str):
    @pedidos_app.command(nome, help=ajuda)
    @_tratar_erros
    def _cmd(
        pedido_id: str = typer.Argument(..., help="Id do pedido"),
        db_path: str = DB_OPTION,
    ):
        ctx = carregar_contexto(_auth(db_path))
        _display_table(func(ctx, pedido_id, db_path=db_path), title=titulo)

    return _cmd


_comando_transicao("aprovar", aprovar_pedido, "Pedido Aprovado", "Aprova o pedido e baixa o estoque.")
_comando_transicao("rejeitar", rejeitar_pedido, "Pedido Rejeitado", "Rejeita o pedido.")
_comando_transicao("finalizar", finalizar_pedido, "Pedido Finalizado", "Marca o pedido como entregue.")
_comando_transicao("confirmar", confirmar_recebimento, "Recebimento Confirmado",
                   "Confirma o recebimento (apenas o solicitante).")


# -----------------------
# usuários
# -----------------------

usuarios_app = typer.Typer(help="Usuários e papéis.")
app.add_typer(usuarios_app, name="usuarios")


@usuarios_app.command("listar")
@_tratar_erros
def cmd_usuarios_listar(db_path: str = DB_OPTION):
    """Lista usuários com seus papéis."""
    ctx = carregar_contexto(_auth(db_path))
    _display_table(listar_usuarios(ctx, db_path=db_path), title="Usuários")


@usuarios_app.command("papel")
@_tratar_erros
def cmd_usuarios_papel(
    user_id: str = typer.Argument(...),
    papel: str = typer.Argument(..., help="admin, operario ou usuario"),
    db_path: str = DB_OPTION,
):
    """Altera o papel de um usuário."""
    ctx = carregar_contexto(_auth(db_path))
    _display_table(alterar_papel(ctx, user_id, papel, db_path=db_path), title="Papel Alterado")


@usuarios_app.command("criar")
@_tratar_erros
def cmd_usuarios_criar(
    nome: str = typer.Option(..., prompt=True),
    email: str = typer.Option(..., prompt=True),
    senha: str = typer.Option(..., prompt=True, hide_input=True),
    papel: str = typer.Option(USUARIO, help="admin, operario ou usuario"),
    db_path: str = DB_OPTION,
):
    """Cadastra um usuário com papel definido (somente admin)."""
    auth = _auth(db_path)
    ctx = carregar_contexto(auth)
    _display_table(cadastrar_usuario(ctx, auth, nome, email, senha, papel), title="Usuário Criado")


# -----------------------
# logs
# -----------------------

@app.command("logs")
@_tratar_erros
def cmd_logs(
    tipo: str = typer.Argument("transactions", help=", ".join(LOG_FILES)),
    linhas: int = typer.Option(50, help="Linhas mais recentes"),
    db_path: str = DB_OPTION,
):
    """Mostra o final de um arquivo de log (somente admin)."""
    ctx = carregar_contexto(_auth(db_path))
    exigir_admin(ctx, "consultar logs")
    typer.echo(get_log_summary(tipo, linhas))


# -----------------------
# TUI
# -----------------------

@app.command("tui")
def cmd_tui(db_path: str = DB_OPTION):
    """Inicia a interface terminal interativa (TUI)."""
    try:
        from brindes.adapters.tui import main as tui_main
        tui_main(db_path)
    except KeyboardInterrupt:
        typer.echo("\nSaindo do TUI...")
        raise typer.Exit(0)


def main():
    app()


if __name__ == "__main__":
    main()
