from dotenv_resolver.errors import CircularReferenceError, Diagnostics, UndefinedVariableError
from dotenv_resolver.resolver import Resolver
from dotenv_resolver.symbols import Origin, ReferenceTable, SymbolTable


def build_resolver(definitions, environ=None):
    symbols = SymbolTable()
    for key, value in definitions.items():
        symbols.define(key, value)
    diagnostics = Diagnostics()
    resolver = Resolver(symbols, ReferenceTable(), diagnostics, environ or {})
    return resolver, symbols, diagnostics


def run(resolver):
    resolver.scan_dependencies()
    resolver.resolve()
    resolver.expand_escapes()


def values(symbols):
    return {record.key: record.value for record in symbols.locals()}


def test_no_references_is_a_noop():
    resolver, symbols, diagnostics = build_resolver({"A": "one", "B": "two words"})

    assert resolver.scan_dependencies() == 0
    assert resolver.resolve() == 0
    assert values(symbols) == {"A": "one", "B": "two words"}
    assert len(diagnostics) == 0


def test_simple_reference_resolves():
    resolver, symbols, diagnostics = build_resolver({"A": "${B}", "B": "hello"})

    run(resolver)

    assert values(symbols) == {"A": "hello", "B": "hello"}
    assert len(diagnostics) == 0


def test_chain_resolves_one_record_per_sweep():
    n = 5
    definitions = {f"K{i}": f"${{K{i + 1}}}" for i in range(1, n)}
    definitions[f"K{n}"] = "literal"
    resolver, symbols, diagnostics = build_resolver(definitions)

    assert resolver.scan_dependencies() == n - 1
    sweeps = resolver.resolve()

    assert sweeps <= n
    assert resolver.history == [3, 2, 1, 0]
    assert all(later < earlier for earlier, later in zip([n - 1] + resolver.history, resolver.history))
    assert set(values(symbols).values()) == {"literal"}
    assert len(diagnostics) == 0


def test_chain_defined_leaf_first_resolves_in_one_sweep():
    definitions = {"C": "leaf", "B": "${C}", "A": "${B}"}
    resolver, symbols, _ = build_resolver(definitions)

    run(resolver)

    assert resolver.sweeps == 1
    assert values(symbols)["A"] == "leaf"


def test_three_cycle_reports_every_key_and_empties_values():
    resolver, symbols, diagnostics = build_resolver({"A": "${B}", "B": "${C}", "C": "${A}"})

    run(resolver)

    errors = list(diagnostics)
    assert len(errors) == 3
    assert all(isinstance(error, CircularReferenceError) for error in errors)
    assert {error.key for error in errors} == {"A", "B", "C"}
    assert values(symbols) == {"A": "", "B": "", "C": ""}
    assert resolver.unresolved == 0


def test_cycle_reports_first_reference_location():
    symbols = SymbolTable()
    symbols.define("A", "x${A}", line=4, column=3)
    diagnostics = Diagnostics()
    resolver = Resolver(symbols, ReferenceTable(), diagnostics)

    run(resolver)

    (error,) = list(diagnostics)
    assert (error.key, error.line, error.column) == ("A", 4, 4)
    assert symbols.get("A").value == "x"


def test_dependents_of_a_cycle_are_forced_without_their_own_diagnostic():
    resolver, symbols, diagnostics = build_resolver({"A": "${B}", "B": "${A}", "C": "${A}-tail"})

    run(resolver)

    assert {error.key for error in diagnostics} == {"A", "B"}
    assert values(symbols) == {"A": "", "B": "", "C": "-tail"}


def test_undefined_reference_is_reported_and_emptied():
    resolver, symbols, diagnostics = build_resolver({"A": "pre${MISSING}post"})

    assert resolver.scan_dependencies() == 0
    resolver.resolve()

    (error,) = list(diagnostics)
    assert isinstance(error, UndefinedVariableError)
    assert error.key == "MISSING"
    assert symbols.get("A").value == "prepost"
    assert "MISSING" not in resolver.references


def test_environment_variables_are_external_sources():
    resolver, symbols, diagnostics = build_resolver({"A": "$HOME/x"}, environ={"HOME": "/home/me"})

    run(resolver)

    assert symbols.get("A").value == "/home/me/x"
    home = symbols.get("HOME")
    assert home.origin is Origin.EXTERNAL
    assert home.complete
    assert "HOME" not in values(symbols)
    assert len(diagnostics) == 0


def test_substitute_leaves_incomplete_targets_for_a_later_sweep():
    resolver, symbols, _ = build_resolver({"A": "${B}-${C}", "B": "x", "C": "${B}"})
    resolver.scan_dependencies()
    record = symbols.get("A")

    assert record.pending_references == 2
    assert resolver.substitute(record) is False
    assert record.value == "x-${C}"
    assert record.pending_references == 1


def test_substitute_with_force_empties_incomplete_targets():
    resolver, symbols, _ = build_resolver({"A": "${B}!", "B": "${A}"})
    resolver.scan_dependencies()

    assert resolver.substitute(symbols.get("A"), force=True) is True
    assert symbols.get("A").value == "!"


def test_multiple_references_are_all_substituted():
    resolver, symbols, _ = build_resolver({"A": "${B}${C}", "B": "${C}", "C": "ok"})

    run(resolver)

    assert symbols.get("A").value == "okok"


def test_escaped_reference_survives_resolution_as_literal():
    resolver, symbols, diagnostics = build_resolver({"A": r"\${B}", "B": "x"})

    assert resolver.scan_dependencies() == 0
    resolver.resolve()
    resolver.expand_escapes()

    assert symbols.get("A").value == "${B}"
    assert len(diagnostics) == 0


def test_escape_expansion_is_idempotent():
    resolver, symbols, _ = build_resolver({"A": r"a\\nb", "B": r"tab\there", "C": r"\${B}"})

    resolver.expand_escapes()
    first = values(symbols)
    resolver.expand_escapes()

    assert first == {"A": "a\\nb", "B": "tab\there", "C": "${B}"}
    assert values(symbols) == first


def test_escape_expansion_skips_external_records():
    resolver, symbols, _ = build_resolver({"A": "${RAW}"}, environ={"RAW": r"keep\n"})

    run(resolver)

    assert symbols.get("RAW").value == r"keep\n"
    assert symbols.get("A").value == r"keep\n"


def test_environment_text_is_inserted_verbatim():
    environ = {"WIN": r"C:\new\\dir", "PRICE": "cost $FOO ${BAR}"}
    resolver, symbols, diagnostics = build_resolver({"A": "${WIN}", "B": "$PRICE"}, environ=environ)

    run(resolver)

    assert symbols.get("A").value == r"C:\new\\dir"
    assert symbols.get("B").value == "cost $FOO ${BAR}"
    assert len(diagnostics) == 0


def test_result_does_not_depend_on_definition_order():
    environ = {"P": "cost $FOO", "WIN": r"C:\new"}
    forward = {"A": "${P}-${B}-${WIN}", "B": "${C}", "C": "x"}
    backward = {"C": "x", "B": "${C}", "A": "${P}-${B}-${WIN}"}

    results = []
    for definitions in (forward, backward):
        resolver, symbols, diagnostics = build_resolver(definitions, environ=environ)
        run(resolver)
        assert len(diagnostics) == 0
        results.append(values(symbols))

    assert results[0] == results[1]
    assert results[0]["A"] == r"cost $FOO-x-C:\new"


def test_environment_text_passes_through_intermediate_symbols():
    resolver, symbols, _ = build_resolver({"A": "${B}!", "B": "${P}"}, environ={"P": r"$X\t"})

    run(resolver)

    assert symbols.get("B").value == r"$X\t"
    assert symbols.get("A").value == r"$X\t!"
