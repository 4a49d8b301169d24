import pytest

from bendlang.core import FanKind, Name, NumVal, Op, PChn, PCtr, PFan, PLst, PNum, PVar, Tag
from bendlang.terms import (
    ENTRY_POINT,
    Adt,
    App,
    Bend,
    Book,
    CtrField,
    Definition,
    Era,
    Fan,
    Let,
    Link,
    MatchArm,
    Mat,
    Num,
    Open,
    Oper,
    Ref,
    Rule,
    Swt,
    Term,
    Use,
    Var,
    pattern_to_term,
)


def test_call_folds_left():
    term = Term.call(Term.ref("f"), [Var("a"), Var("b")])
    assert term == Term.app(Term.app(Ref("f"), Var("a")), Var("b"))
    assert list(term.children())[1] == Var("b")


def test_tagged_call_uses_tag():
    tag = Tag.named("t")
    term = Term.tagged_call(tag, Ref("f"), [Var("x")])
    assert isinstance(term, App) and term.tag == tag


def test_rfold_lams_order():
    term = Term.rfold_lams(Var("x"), ["a", None])
    assert term.pat == PVar("a")
    inner = term.bod
    assert inner.pat == PVar(None)
    assert inner.bod == Var("x")


def test_var_or_era():
    assert Term.var_or_era(None) == Era()
    assert Term.var_or_era("v") == Var("v")


def test_sub_and_add_num_zero_is_identity():
    arg = Var("n")
    assert Term.sub_num(arg, NumVal.u24(0)) is arg
    assert Term.add_num(arg, NumVal.i24(0)) is arg
    sub = Term.sub_num(Var("n"), NumVal.u24(3))
    assert sub == Oper(opr=Op.SUB, fst=Var("n"), snd=Num(NumVal.u24(3)))
    assert Term.add_num(Var("n"), NumVal.u24(3)).opr == Op.ADD


def test_subst_replaces_free_only():
    term = Term.app(Var("x"), Term.lam(PVar("x"), Var("x")))
    result = term.subst("x", Ref("k"))
    assert result.fun == Ref("k")
    assert result.arg.bod == Var("x")


def test_subst_at_root():
    assert Var("x").subst("x", Era()) == Era()


def test_subst_unscoped():
    term = Term.app(Link("u"), Link("v"))
    result = term.subst_unscoped("u", Ref("r"))
    assert result.fun == Ref("r")
    assert result.arg == Link("v")


def test_free_vars_removes_binds():
    term = Term.lam(PVar("a"), Term.app(Var("a"), Var("b")))
    free = term.free_vars()
    assert set(free) == {"b"}


def test_free_vars_let_value_not_bound():
    term = Let(pat=PVar("a"), val=Var("a"), nxt=Var("a"))
    assert set(term.free_vars()) == {"a"}


def test_unscoped_vars():
    term = Term.lam(PChn("d"), Term.app(Link("u"), Link("u")))
    decls, uses = term.unscoped_vars()
    assert decls == ["d"]
    assert uses == ["u"]


def test_has_unscoped():
    assert Term.app(Var("a"), Link("b")).has_unscoped()
    assert not Term.app(Var("a"), Var("b")).has_unscoped()
    let = Let(pat=PFan(FanKind.TUP, Tag(), [PChn("c"), PVar("d")]), val=Era(), nxt=Era())
    assert let.has_unscoped()


def test_children_with_binds_match_and_switch():
    mat = Mat(arg=Var("x"), bnd="x", with_=[], arms=[MatchArm("C", ["h", "t"], Var("h"))])
    binds = [b for _, b in mat.children_with_binds()]
    assert binds == [[], ["h", "t"]]
    swt = Swt(arg=Var("n"), bnd="n", with_=[], pred="n-1", arms=[Era(), Var("n-1")])
    binds = [b for _, b in swt.children_with_binds()]
    assert binds == [[], [], ["n-1"]]


def test_bend_binds_and_map_children():
    bend = Bend(bind=["s"], init=[Var("i")], cond=Var("s"), step=Var("s"), base=Var("s"))
    binds = [b for _, b in bend.children_with_binds()]
    assert binds == [[], ["s"], ["s"], ["s"]]
    bend.map_children(lambda c: Era())
    assert bend.init == [Era()] and bend.base == Era()


def test_use_binds_name():
    use = Use(nam="a", val=Var("a"), nxt=Var("a"))
    assert set(use.free_vars()) == {"a"}
    assert use.subst("a", Era()).nxt == Var("a")


def test_open_children_with_binds_raises():
    term = Open(typ="T", var="v", bod=Era())
    assert list(term.children()) == [Era()]
    with pytest.raises(ValueError):
        list(term.children_with_binds())


def test_pattern_accessor():
    pat = PVar("a")
    assert Term.lam(pat, Era()).pattern() is pat
    assert Var("a").pattern() is None


def test_pattern_to_term():
    pat = PCtr("C", [PVar("a"), PNum(5), PChn("z"), PVar(None)])
    term = pattern_to_term(pat)
    expected = Term.call(Ref("C"), [Var("a"), Num(NumVal.u24(5)), Link("z"), Era()])
    assert term == expected
    fan = pattern_to_term(PFan(FanKind.DUP, Tag.auto(), [PVar("x")]))
    assert fan == Fan(fan=FanKind.DUP, tag=Tag.auto(), els=[Var("x")])
    with pytest.raises(ValueError):
        pattern_to_term(PLst([]))


def test_definition_rule_checks():
    single = Definition("f", [Rule([], Era())])
    assert single.rule().body == Era()
    assert single.arity() == 0
    with pytest.raises(AssertionError, match="rules should have been removed"):
        Definition("g", [Rule(), Rule()]).rule()
    with pytest.raises(AssertionError, match="args should have been removed"):
        Definition("h", [Rule([PVar("a")], Era())]).rule()


def test_hvmc_entrypoint():
    assert Book().hvmc_entrypoint() == ENTRY_POINT
    assert Book(entrypoint=Name("Main")).hvmc_entrypoint() == ENTRY_POINT
    assert Book(entrypoint=Name("start")).hvmc_entrypoint() == "start"


def test_add_adt_registers_constructors():
    book = Book()
    book.add_adt("T", Adt({Name("T/A"): [CtrField("x")], Name("T/B"): []}))
    assert book.ctrs == {"T/A": "T", "T/B": "T"}
    assert "T" in book.adts


def test_add_adt_errors():
    book = Book()
    book.add_adt("L", Adt({Name("L/N"): []}, builtin=True))
    with pytest.raises(ValueError, match="built-in datatype"):
        book.add_adt("L", Adt())
    with pytest.raises(ValueError, match="built-in constructor"):
        book.add_adt("M", Adt({Name("L/N"): []}))
    book.add_adt("U", Adt({Name("U/A"): []}))
    with pytest.raises(ValueError, match="Repeated datatype 'U'"):
        book.add_adt("U", Adt())
    with pytest.raises(ValueError, match="Repeated constructor 'U/A'"):
        book.add_adt("V", Adt({Name("U/A"): []}))