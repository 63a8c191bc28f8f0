import json

import pytest

from solgen.bind import Customs, Lang, load_contract, parse_abi, parse_contract
from solgen.bind.parser import structured
from solgen.bind.model import Argument, TypeRef
from solgen.errors import (
    DuplicateMember,
    StructDepthExceeded,
    UnsupportedLanguageFeature,
    UnsupportedType,
)

ORDER_SIG = "(address,uint256,(uint16,address))"
FEE_SIG = "(uint16,address)"


def _fn(name, inputs=(), outputs=(), mut="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "stateMutability": mut,
        "inputs": list(inputs),
        "outputs": list(outputs),
    }


def _nested_input(levels):
    comp = {"name": "x", "type": "uint8"}
    for _ in range(levels - 1):
        comp = {"name": "inner", "type": "tuple", "components": [comp]}
    return {"name": "deep", "type": "tuple", "components": [comp]}


# ---- basics ----


def test_single_view_method():
    abi = [_fn("getValue", outputs=[{"name": "", "type": "uint256"}], mut="view")]
    c = load_contract(json.dumps(abi), {"Methods": {"getValue": True}}, "go")

    assert list(c.calls) == ["getValue"]
    assert c.transacts == {}
    assert c.events == {}
    assert c.structs == {}
    bound = c.calls["getValue"]
    assert bound.original.name == "getValue"
    assert bound.normalized.name == "GetValue"
    assert bound.normalized.outputs[0].host_type == "*big.Int"
    assert bound.structured is False


def test_calls_and_transacts_partition(token_abi, expose):
    c = load_contract(token_abi, expose("balanceOf", "transfer", "totalSupply"), Lang.GO)
    assert sorted(c.calls) == ["balanceOf", "totalSupply"]
    assert list(c.transacts) == ["transfer"]
    assert c.language == "go"
    assert c.has_fallback is True
    assert c.has_receive is False


def test_allow_list_hides_everything_else(token_abi):
    c = load_contract(token_abi, {"Methods": {"balanceOf": True, "transfer": False}}, "go")
    assert list(c.calls) == ["balanceOf"]
    assert c.transacts == {}


def test_no_customs_exposes_no_methods_but_keeps_events(token_abi):
    c = load_contract(token_abi, None, "go")
    assert c.calls == {} and c.transacts == {}
    assert list(c.events) == ["Transfer"]


def test_customs_keys_are_case_insensitive(token_abi):
    c = load_contract(token_abi, {"methods": {"transfer": True}}, "go")
    assert list(c.transacts) == ["transfer"]


def test_transfer_event_go(token_abi):
    c = load_contract(token_abi, None, "go")
    ev = c.events["Transfer"]
    assert ev.normalized.name == "Transfer"
    assert [a.name for a in ev.normalized.inputs] == ["from", "to", "value"]
    assert [a.host_type for a in ev.normalized.inputs] == [
        "common.Address",
        "common.Address",
        "*big.Int",
    ]
    # original left untouched
    assert ev.original.inputs[0].host_type is None


def test_anonymous_events_are_skipped(token_abi):
    for lang in Lang:
        assert "Debug" not in load_contract(token_abi, None, lang).events


def test_input_abi_is_stripped_and_escaped(token_abi):
    c = load_contract(json.dumps(token_abi, indent=2), None, "go")
    assert " " not in c.input_abi and "\n" not in c.input_abi
    assert c.input_abi.startswith('[{\\"type\\":\\"constructor\\"')


def test_parse_contract_leaves_input_abi_empty(token_abi):
    c = parse_contract(parse_abi(token_abi), Customs(), "go")
    assert c.input_abi == ""


# ---- naming ----


def test_positional_names_for_unnamed_inputs(order_abi, expose):
    c = load_contract(order_abi, expose("fill"), "go")
    inputs = c.transacts["fill"].normalized.inputs
    assert [a.name for a in inputs] == ["order", "arg1"]
    assert [a.host_type for a in inputs] == ["ExchangeOrder", "*big.Int"]
    # original keeps the ABI's empty name
    assert c.transacts["fill"].original.inputs[1].name == ""


def test_reserved_input_names_are_kept_and_escaped():
    abi = [_fn("move", inputs=[{"name": "from", "type": "address"}, {"name": "to", "type": "address"}])]
    py = load_contract(abi, {"Methods": {"move": True}}, "python")
    go = load_contract(abi, {"Methods": {"move": True}}, "go")

    py_inputs = py.transacts["move"].normalized.inputs
    go_inputs = go.transacts["move"].normalized.inputs
    assert [a.name for a in py_inputs] == ["from", "to"]
    assert [a.ident for a in py_inputs] == ["from_", "to"]
    assert [a.name for a in go_inputs] == ["from", "to"]
    assert [a.ident for a in go_inputs] == ["from", "to"]


def test_python_indexed_event_input_from(token_abi):
    c = load_contract(token_abi, None, "python")
    ev = c.events["Transfer"].normalized
    assert ev.name == "transfer"
    assert [a.name for a in ev.inputs] == ["from", "to", "value"]
    assert [a.ident for a in ev.inputs] == ["from_", "to", "value"]
    assert [a.host_type for a in ev.inputs] == ["str", "str", "int"]


def test_method_names_per_language(token_abi, expose):
    customs = expose("balanceOf")
    assert load_contract(token_abi, customs, "go").calls["balanceOf"].normalized.name == "BalanceOf"
    assert load_contract(token_abi, customs, "java").calls["balanceOf"].normalized.name == "balanceOf"
    assert load_contract(token_abi, customs, "python").calls["balanceOf"].normalized.name == "balance_of"


def test_named_outputs_are_capitalised(order_abi, expose):
    c = load_contract(order_abi, expose("quote"), "go")
    bound = c.calls["quote"]
    assert [a.name for a in bound.normalized.outputs] == ["Price", "Fee"]
    assert [a.host_type for a in bound.normalized.outputs] == ["*big.Int", "ExchangeFee"]
    assert bound.structured is True


def test_overloads_are_bound_separately():
    abi = [
        _fn("transfer", inputs=[{"name": "to", "type": "address"}]),
        _fn("transfer", inputs=[{"name": "to", "type": "address"}, {"name": "v", "type": "uint256"}]),
    ]
    c = load_contract(abi, {"Methods": {"transfer": True, "transfer0": True}}, "go")
    assert list(c.transacts) == ["transfer", "transfer0"]
    assert c.transacts["transfer0"].normalized.name == "Transfer0"
    assert c.transacts["transfer0"].original.raw_name == "transfer"


@pytest.mark.parametrize(
    "names, expected",
    [
        (["a", "b"], True),
        (["a"], False),
        (["a", ""], False),
        (["var", "Var"], False),
        (["_var", "var"], False),
    ],
)
def test_structured(names, expected):
    args = [Argument(name=n, type=TypeRef("uint", bits=256)) for n in names]
    assert structured(args) is expected


# ---- structs ----


def test_structs_are_deduplicated(order_abi, expose):
    c = load_contract(order_abi, expose("fill", "quote", "batch"), "go")
    assert list(c.structs) == [FEE_SIG, ORDER_SIG]
    assert c.structs[ORDER_SIG].name == "ExchangeOrder"
    assert c.structs[FEE_SIG].name == "ExchangeFee"
    assert [(f.name, f.type) for f in c.structs[ORDER_SIG].fields] == [
        ("Maker", "common.Address"),
        ("Amount", "*big.Int"),
        ("Fee", "ExchangeFee"),
    ]
    assert c.transacts["batch"].normalized.inputs[0].host_type == "[]ExchangeOrder"


def test_struct_rename_reaches_every_reference(order_abi, expose):
    customs = expose("fill", "batch", structs={ORDER_SIG: "Order", FEE_SIG: "Fee"})
    c = load_contract(order_abi, customs, "go")

    assert c.structs[ORDER_SIG].name == "Order"
    assert c.transacts["fill"].normalized.inputs[0].host_type == "Order"
    assert c.transacts["batch"].normalized.inputs[0].host_type == "[]Order"
    assert c.structs[ORDER_SIG].fields[2].type == "Fee"
    # event body tuple is bound too once the struct exists
    filled = c.events["Filled"].normalized.inputs
    assert [a.host_type for a in filled] == ["*big.Int", "Order"]


def test_duplicate_rename_is_rejected(order_abi, expose):
    customs = expose("fill", structs={ORDER_SIG: "X", FEE_SIG: "X"})
    with pytest.raises(DuplicateMember) as ei:
        load_contract(order_abi, customs, "go")
    assert ei.value.kind == "struct"


def test_default_names_avoid_rename_targets():
    abi = [
        _fn("a", inputs=[{"name": "p", "type": "tuple", "components": [{"name": "b", "type": "bool"}]}]),
        _fn("b", inputs=[{"name": "q", "type": "tuple", "components": [{"name": "u", "type": "uint8"}]}]),
    ]
    c = load_contract(abi, {"Methods": {"a": True, "b": True}, "Structs": {"(uint8)": "Struct0"}}, "go")
    assert c.structs["(bool)"].name == "Struct1"
    assert c.structs["(uint8)"].name == "Struct0"


def test_depth_guard():
    abi = [_fn("deep", inputs=[_nested_input(3)])]
    customs = {"Methods": {"deep": True}}
    with pytest.raises(StructDepthExceeded) as ei:
        load_contract(abi, customs, "go", max_depth=1)
    assert ei.value.member == "deep"

    c = load_contract(abi, customs, "go", max_depth=2)
    assert len(c.structs) == 3


def test_java_rejects_tuples(order_abi, expose):
    with pytest.raises(UnsupportedLanguageFeature) as ei:
        load_contract(order_abi, expose("fill"), "java")
    assert ei.value.language == "java"
    assert ei.value.feature == "structs"


def test_java_accepts_tuple_free_contract(order_abi, token_abi, expose):
    c = load_contract(token_abi, expose("transfer"), "java")
    assert c.transacts["transfer"].normalized.inputs[1].host_type == "BigInt"
    # no method exposed and the event tuple is not indexed: nothing to reject
    c = load_contract(order_abi, None, "java")
    assert c.structs == {}


# ---- events: indexed vs body ----


def test_event_body_is_not_walked(order_abi):
    c = load_contract(order_abi, None, "go")
    assert c.structs == {}
    inputs = c.events["Filled"].normalized.inputs
    assert [a.name for a in inputs] == ["id", "order"]
    assert [a.host_type for a in inputs] == ["*big.Int", None]


def test_indexed_tuple_is_registered_and_hashed():
    abi = [
        {
            "type": "event",
            "name": "Posted",
            "inputs": [
                {"name": "", "type": "tuple", "indexed": True, "components": [{"name": "a", "type": "uint8"}]},
                {"name": "", "type": "string", "indexed": True},
                {"name": "", "type": "string", "indexed": False},
            ],
        }
    ]
    c = load_contract(abi, None, "go")
    assert list(c.structs) == ["(uint8)"]
    inputs = c.events["Posted"].normalized.inputs
    assert [a.name for a in inputs] == ["arg0", "arg1", ""]
    assert [a.host_type for a in inputs] == ["common.Hash", "common.Hash", "string"]

    with pytest.raises(UnsupportedLanguageFeature):
        load_contract(abi, None, "java")


# ---- constructor, errors, determinism ----


def test_constructor_inputs(token_abi):
    c = load_contract(token_abi, None, "go")
    assert c.constructor is not None
    assert [(a.name, a.host_type) for a in c.constructor.inputs] == [("supply", "*big.Int")]


def test_unsupported_type_names_member():
    abi = [_fn("setRate", inputs=[{"name": "rate", "type": "ufixed128x18"}])]
    with pytest.raises(UnsupportedType) as ei:
        load_contract(abi, {"Methods": {"setRate": True}}, "go")
    assert ei.value.member == "setRate.rate"
    assert ei.value.type_name == "ufixed128x18"


def test_hidden_unsupported_type_is_ignored():
    abi = [_fn("setRate", inputs=[{"name": "rate", "type": "ufixed128x18"}])]
    c = load_contract(abi, None, "go")
    assert c.transacts == {}


def test_compilation_is_deterministic(order_abi, expose):
    customs = expose("fill", "quote", "batch", structs={FEE_SIG: "Fee"})
    first = json.dumps(load_contract(order_abi, customs, "go").to_dict())
    second = json.dumps(load_contract(order_abi, customs, "go").to_dict())
    assert first == second


def test_to_dict_shape(token_abi, expose):
    d = load_contract(token_abi, expose("transfer"), "python").to_dict()
    assert set(d) == {
        "language",
        "constructor",
        "calls",
        "transacts",
        "events",
        "structs",
        "inputAbi",
        "hasFallback",
        "hasReceive",
    }
    arg = d["transacts"]["transfer"]["normalized"]["inputs"][0]
    assert arg == {"name": "to", "type": "address", "indexed": False, "hostType": "str", "ident": "to"}
