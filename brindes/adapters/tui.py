from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical, ScrollableContainer
from textual.widgets import Button, DataTable, Footer, Header, Input, Label, Static, Tree
from textual.screen import ModalScreen, Screen

from brindes.config import DB_PATH
from brindes.domain.errors import BrindesError, ValidationError
from brindes.domain.models import APROVADO, CONCLUIDO, Contexto, ENTRADA, FINALIZADO, REJEITADA
from brindes.domain.policies import FILTRO_TODOS
from brindes.infra.auth import AuthProvider
from brindes.infra.logger import ENABLE_LOGGING, ENABLE_OUTPUT, log_system_event
from brindes.infra.repositories import ProdutoRepo
from brindes.usecases.papeis import carregar_contexto
from brindes.usecases.catalogo import importar_brindes, listar_brindes, listar_categorias
from brindes.usecases.dashboard import resumo_dashboard
from brindes.usecases.movimentacoes import (
    exportar_movimentacoes, listar_movimentacoes, registrar_movimentacao
)
from brindes.usecases.pedidos import (
    aprovar_pedido, confirmar_recebimento, criar_pedido, finalizar_pedido,
    listar_pedidos, rejeitar_pedido,
)
from brindes.usecases.usuarios import alterar_senha, listar_usuarios


Secao = Tuple[str, str, List[Tuple[str, str]]]


def itens_menu(contexto: Optional[Contexto]) -> List[Secao]:
    """Seções do menu visíveis ao papel: (rótulo, id, [(rótulo, ação)])."""
    if contexto is None:
        return [("Conta", "conta", [("Entrar", "login")])]

    secoes: List[Secao] = []
    catalogo = [("Ver Brindes", "ver-brindes"), ("Ver Categorias", "ver-categorias")]
    if contexto.pode_gerenciar:
        catalogo.append(("Importar Brindes (XLSX/CSV)", "importar-brindes"))
    secoes.append(("Catálogo", "catalogo", catalogo))

    secoes.append(("Pedidos", "pedidos", [
        ("Ver Pedidos", "ver-pedidos"),
        ("Novo Pedido", "novo-pedido"),
    ]))

    if contexto.pode_gerenciar:
        secoes.append(("Movimentação", "movimentacao", [
            ("Registrar Entrada/Saída", "registrar-mov"),
            ("Histórico", "ver-movs"),
            ("Exportar Histórico", "exportar-movs"),
        ]))
        secoes.append(("Gestão", "gestao", [
            ("Dashboard", "dashboard"),
            ("Usuários", "ver-usuarios"),
        ]))

    secoes.append(("Conta", "conta", [
        ("Alterar Senha", "alterar-senha"),
        ("Sair da Conta", "logout"),
    ]))
    return secoes


class OutputDataTableScreen(Screen):
    """Screen to display a DataTable with query results."""
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
            yield Static(self.title, classes="output-title")
            dt = DataTable(zebra_stripes=True)
            dt.add_columns(*self.columns)
            for row in self.rows:
                dt.add_row(*[str(cell) if cell is not None else "" for cell in row])
            yield dt
        yield Footer()


class StatusDisplay(Static):
    """Usuário logado, papel e banco em uso."""

    def __init__(self, db_path: str) -> None:
        super().__init__()
        self.db_path = db_path

    def refresh_status(self, contexto: Optional[Contexto], email: Optional[str] = None) -> None:
        info = []
        if contexto is None:
            info.append("Usuário: (não autenticado)")
        else:
            info.append(f"Usuário: {email or contexto.identidade}")
            info.append(f"Papel: {contexto.papel}")
        db = Path(self.db_path)
        info.append(f"Banco: {self.db_path}" + ("" if db.exists() else " (não encontrado)"))
        info.append(f"Logging: {'Ativo' if ENABLE_LOGGING else 'Desativado'}")
        info.append(f"Output: {'Ativo' if ENABLE_OUTPUT else 'Desativado'}")
        self.update("\n".join(info))


class MenuTreeWidget(Tree):
    """Árvore de navegação montada a partir do papel do usuário."""

    def __init__(self, contexto: Optional[Contexto] = None) -> None:
        super().__init__("Brindes - Menu Principal")
        self.setup_menu_tree(contexto)

    def setup_menu_tree(self, contexto: Optional[Contexto]) -> None:
        self.root.remove_children()
        for rotulo, secao_id, folhas in itens_menu(contexto):
            node = self.root.add(rotulo, data=secao_id, expand=True)
            for folha, acao in folhas:
                node.add_leaf(folha, data=acao)
        self.root.expand()


class _Formulario(ModalScreen):
    """Modal genérico: uma lista de campos de texto e botões Ok/Cancelar."""

    BINDINGS = [("escape", "app.pop_screen", "Cancel")]

    titulo = ""
    campos: List[Tuple[str, str, str]] = []  # (chave, rótulo, placeholder)
    senhas: Tuple[str, ...] = ()
    obrigatorios: Tuple[str, ...] = ()

    def __init__(self) -> None:
        super().__init__()
        self.inputs: Dict[str, Input] = {}

    def compose(self) -> ComposeResult:
        with Container(classes="form-modal"):
            yield Static(self.titulo, classes="modal-title")
            with Vertical():
                for chave, rotulo, placeholder in self.campos:
                    yield Label(rotulo)
                    self.inputs[chave] = Input(
                        placeholder=placeholder, password=chave in self.senhas, id=f"{chave}-input"
                    )
                    yield self.inputs[chave]
                with Horizontal():
                    yield Button("Ok", variant="primary", id="ok-btn")
                    yield Button("Cancelar", id="cancel-btn")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "ok-btn":
            valores = {k: inp.value.strip() for k, inp in self.inputs.items()}
            faltando = [k for k in self.obrigatorios if not valores.get(k)]
            if faltando:
                self.notify(f"Informe: {', '.join(faltando)}", severity="warning")
                return
            self.dismiss(valores)
        elif event.button.id == "cancel-btn":
            self.app.pop_screen()


class LoginForm(_Formulario):
    titulo = "Entrar"
    campos = [("email", "E-mail:", "voce@empresa.com"), ("senha", "Senha:", "")]
    senhas = ("senha",)
    obrigatorios = ("email", "senha")


class SenhaForm(_Formulario):
    titulo = "Alterar Senha"
    campos = [("nova", "Nova senha:", ""), ("confirmacao", "Confirme a nova senha:", "")]
    senhas = ("nova", "confirmacao")


class MovimentacaoForm(_Formulario):
    titulo = "Registrar Movimentação"
    campos = [
        ("codigo", "Código do brinde:", "BR-001"),
        ("tipo", "Tipo (entrada/saida):", ENTRADA),
        ("quantidade", "Quantidade:", "10"),
        ("observacao", "Observação (opcional):", ""),
    ]
    obrigatorios = ("codigo", "tipo", "quantidade")


class PedidoForm(_Formulario):
    titulo = "Novo Pedido"
    campos = [
        ("codigo", "Código do brinde:", "BR-001"),
        ("quantidade", "Quantidade:", "1"),
        ("motivo", "Motivo (opcional):", ""),
    ]
    obrigatorios = ("codigo", "quantidade")


class ArquivoForm(_Formulario):
    campos = [("arquivo", "Arquivo:", "brindes.xlsx")]
    obrigatorios = ("arquivo",)

    def __init__(self, titulo: str) -> None:
        super().__init__()
        self.titulo = titulo


class PedidosScreen(Screen):
    """Lista de pedidos com ações de workflow na linha selecionada."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Back"),
        ("a", "transicao('aprovado')", "Aprovar"),
        ("r", "transicao('rejeitada')", "Rejeitar"),
        ("f", "transicao('finalizado')", "Finalizar"),
        ("c", "transicao('concluido')", "Confirmar"),
        ("s", "proximo_filtro", "Filtro"),
    ]

    COLUNAS = ["Data", "Brinde", "Qtd", "Solicitante", "Status", "Motivo", "Ações"]

    def __init__(self, auth: AuthProvider) -> None:
        super().__init__()
        self.auth = auth
        self.status = FILTRO_TODOS
        self.filtros: List[str] = [FILTRO_TODOS]
        self._ids: List[str] = []

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="pedidos-titulo", classes="output-title")
        dt = DataTable(zebra_stripes=True, cursor_type="row", id="pedidos-table")
        dt.add_columns(*self.COLUNAS)
        yield dt
        yield Footer()

    def on_mount(self) -> None:
        self.carregar()

    def carregar(self) -> None:
        try:
            ctx = carregar_contexto(self.auth)
            res = listar_pedidos(ctx, status=self.status, db_path=self.auth.db_path)
        except BrindesError as e:
            self.notify(f"Erro: {e}", severity="error")
            return
        self.filtros = res["filtros"]
        dt = self.query_one("#pedidos-table", DataTable)
        dt.clear()
        self._ids = []
        for p in res["pedidos"]:
            self._ids.append(p["id"])
            dt.add_row(
                p["created_at"][:16],
                f"{p['produto_codigo']} - {p['produto_nome']}",
                str(p["quantidade"]),
                p["solicitante_nome"] or "",
                p["status"],
                p["motivo"] or "",
                ", ".join(p["acoes"]),
            )
        self.query_one("#pedidos-titulo", Static).update(
            f"Pedidos ({self.status}) - filtros: {', '.join(self.filtros)}"
        )

    def action_proximo_filtro(self) -> None:
        idx = self.filtros.index(self.status) if self.status in self.filtros else -1
        self.status = self.filtros[(idx + 1) % len(self.filtros)]
        self.carregar()

    def action_transicao(self, novo: str) -> None:
        dt = self.query_one("#pedidos-table", DataTable)
        if not self._ids:
            return
        pedido_id = self._ids[dt.cursor_row]
        operacoes: Dict[str, Callable[..., Dict[str, Any]]] = {
            APROVADO: aprovar_pedido,
            REJEITADA: rejeitar_pedido,
            FINALIZADO: finalizar_pedido,
            CONCLUIDO: confirmar_recebimento,
        }
        try:
            ctx = carregar_contexto(self.auth)
            operacoes[novo](ctx, pedido_id, db_path=self.auth.db_path)
        except BrindesError as e:
            self.notify(f"Erro: {e}", severity="error")
            return
        self.notify(f"Pedido atualizado: {novo}")
        self.carregar()


class BrindesTUIApp(App):
    """Interface terminal do sistema de brindes."""

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

    Container.form-modal {
        background: #112233;
        border: solid #00aaff;
        width: 64;
        height: auto;
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

    TITLE = "Brindes - Estoque e Pedidos"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("d", "toggle_dark", "Toggle Dark Mode"),
    ]

    def __init__(self, db_path: str = DB_PATH) -> None:
        super().__init__()
        self.db_path = db_path
        self.auth = AuthProvider(db_path)
        self.menu_tree: Optional[MenuTreeWidget] = None
        self.status_display: Optional[StatusDisplay] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal():
            with Container(classes="left-panel"):
                self.menu_tree = MenuTreeWidget(None)
                yield self.menu_tree
            with Vertical(classes="right-panel"):
                self.status_display = StatusDisplay(self.db_path)
                yield self.status_display
                yield Static(
                    "Use as setas para navegar e ENTER para executar.\n"
                    "Na tela de pedidos: a=aprovar r=rejeitar f=finalizar c=confirmar s=filtro",
                    classes="info-panel",
                )
        yield Footer()

    def on_mount(self) -> None:
        self.atualizar_menu()

    def _contexto(self) -> Optional[Contexto]:
        """Contexto novo a cada operação; None se não há sessão."""
        if self.auth.current_user() is None:
            return None
        return carregar_contexto(self.auth)

    def atualizar_menu(self) -> None:
        try:
            ctx = self._contexto()
        except BrindesError as e:
            self.notify(f"Erro: {e}", severity="error")
            ctx = None
        user = self.auth.current_user() if ctx else None
        if self.menu_tree:
            self.menu_tree.setup_menu_tree(ctx)
        if self.status_display:
            self.status_display.refresh_status(ctx, user.email if user else None)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        if not event.node.data or event.node.children:
            return
        self.execute_action(event.node.data)

    def execute_action(self, action: str) -> None:
        log_system_event("tui_action_start", {"action": action})
        try:
            if action == "login":
                self.push_screen(LoginForm(), self.on_login_result)
            elif action == "logout":
                self.auth.sign_out()
                self.atualizar_menu()
            elif action == "alterar-senha":
                self.push_screen(SenhaForm(), self.on_senha_result)
            elif action == "ver-brindes":
                self.mostrar_brindes()
            elif action == "ver-categorias":
                rows = listar_categorias(db_path=self.db_path)
                self.push_screen(OutputDataTableScreen(
                    "Categorias", ["Nome", "Criada em"], [[c["nome"], c["created_at"]] for c in rows]
                ))
            elif action == "importar-brindes":
                self.push_screen(ArquivoForm("Importar Brindes (XLSX/CSV)"), self.on_importar_result)
            elif action == "ver-pedidos":
                self.push_screen(PedidosScreen(self.auth))
            elif action == "novo-pedido":
                self.push_screen(PedidoForm(), self.on_pedido_result)
            elif action == "registrar-mov":
                self.push_screen(MovimentacaoForm(), self.on_movimentacao_result)
            elif action == "ver-movs":
                self.mostrar_movimentacoes()
            elif action == "exportar-movs":
                self.push_screen(ArquivoForm("Exportar Histórico (XLSX/CSV)"), self.on_exportar_result)
            elif action == "dashboard":
                self.mostrar_dashboard()
            elif action == "ver-usuarios":
                rows = listar_usuarios(carregar_contexto(self.auth), db_path=self.db_path)
                self.push_screen(OutputDataTableScreen(
                    "Usuários", ["Nome", "Cargo", "Papel"], [[u["nome"], u["cargo"], u["papel"]] for u in rows]
                ))
        except BrindesError as e:
            self.notify(f"Erro: {e}", severity="error")

    # -------- telas de consulta --------
    def mostrar_brindes(self) -> None:
        rows = listar_brindes(db_path=self.db_path)
        self.push_screen(OutputDataTableScreen(
            "Brindes",
            ["Código", "Nome", "Categoria", "Qtd", "Mínimo", "Local", "Status"],
            [[b["codigo"], b["nome"], b["categoria"], b["quantidade"], b["estoque_minimo"],
              b["localizacao"], b["status"]] for b in rows],
        ))

    def mostrar_movimentacoes(self) -> None:
        rows = listar_movimentacoes(db_path=self.db_path)
        self.push_screen(OutputDataTableScreen(
            "Movimentações Recentes",
            ["Data", "Tipo", "Qtd", "Brinde", "Responsável", "Observação"],
            [[m["created_at"][:16], m["tipo"], m["quantidade"], m["produto_nome"],
              m["usuario_nome"], m["observacao"]] for m in rows],
        ))

    def mostrar_dashboard(self) -> None:
        res = resumo_dashboard(carregar_contexto(self.auth), db_path=self.db_path)
        rows = [
            ["Total de brindes", res["total_brindes"]],
            ["Estoque normal", res["estoque_normal"]],
            ["Estoque baixo", res["estoque_baixo"]],
            ["Sem estoque", res["sem_estoque"]],
            ["Pedidos pendentes", res["pedidos_pendentes"]],
        ]
        rows += [[f"Categoria: {c['categoria']}", c["quantidade"]] for c in res["por_categoria"]]
        rows += [[f"Alerta: {a['codigo']} - {a['nome']}", f"{a['quantidade']} ({a['status']})"] for a in res["alertas"]]
        self.push_screen(OutputDataTableScreen("Dashboard", ["Indicador", "Valor"], rows))

    # -------- callbacks dos formulários --------
    def _executar(self, func: Callable[[], Any], sucesso: str) -> Any:
        try:
            out = func()
        except BrindesError as e:
            self.notify(f"Erro: {e}", severity="error")
            return None
        self.notify(sucesso)
        return out

    def _produto_id(self, codigo: str) -> str:
        produto = ProdutoRepo(self.db_path).get_by_codigo(codigo)
        if produto is None:
            raise ValidationError(f"Brinde não encontrado: {codigo}")
        return produto["id"]

    def on_login_result(self, valores: Optional[Dict[str, str]]) -> None:
        if not valores:
            return
        self._executar(lambda: self.auth.sign_in(valores["email"], valores["senha"]), "Login realizado")
        self.atualizar_menu()

    def on_senha_result(self, valores: Optional[Dict[str, str]]) -> None:
        if valores:
            self._executar(
                lambda: alterar_senha(self.auth, valores["nova"], valores["confirmacao"]),
                "Senha alterada com sucesso",
            )

    def on_pedido_result(self, valores: Optional[Dict[str, str]]) -> None:
        if valores:
            self._executar(lambda: criar_pedido(
                carregar_contexto(self.auth),
                self._produto_id(valores["codigo"]),
                valores["quantidade"],
                valores.get("motivo"),
                db_path=self.db_path,
            ), "Pedido criado")

    def on_movimentacao_result(self, valores: Optional[Dict[str, str]]) -> None:
        if valores:
            self._executar(lambda: registrar_movimentacao(
                carregar_contexto(self.auth),
                self._produto_id(valores["codigo"]),
                valores["tipo"],
                valores["quantidade"],
                valores.get("observacao"),
                db_path=self.db_path,
            ), "Movimentação registrada")

    def on_importar_result(self, valores: Optional[Dict[str, str]]) -> None:
        if not valores:
            return
        res = self._executar(
            lambda: importar_brindes(carregar_contexto(self.auth), valores["arquivo"], db_path=self.db_path),
            "Importação concluída",
        )
        if res:
            rows = [["Total", res["total"]], ["Criados", res["criados"]], ["Atualizados", res["atualizados"]]]
            rows += [[f"Linha {e['linha']}", e["mensagem"]] for e in res["erros"]]
            self.push_screen(OutputDataTableScreen("Importação de Brindes", ["Campo", "Valor"], rows))

    def on_exportar_result(self, valores: Optional[Dict[str, str]]) -> None:
        if valores:
            self._executar(
                lambda: exportar_movimentacoes(valores["arquivo"], db_path=self.db_path),
                f"Histórico exportado para {valores['arquivo']}",
            )


def main(db_path: str = DB_PATH) -> None:
    BrindesTUIApp(db_path).run()


if __name__ == "__main__":
    main()
