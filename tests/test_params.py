from __future__ import annotations

from mwaction.params import split_post_parameters, transform_param_value, transform_params


def test_transform_params_drops_false_and_none() -> None:
    params = transform_params({"a": False, "b": None, "c": "x"})
    assert params == {"c": "x"}


def test_transform_params_true_is_empty_string() -> None:
    assert transform_params({"redirects": True}) == {"redirects": ""}


def test_numbers_render_as_decimal_strings() -> None:
    assert transform_params({"formatversion": 2, "maxlag": 5.0, "ratio": 1.5}) == {
        "formatversion": "2",
        "maxlag": "5",
        "ratio": "1.5",
    }


def test_collections_join_with_pipe() -> None:
    assert transform_param_value(["Main Page", "Help:Contents"]) == "Main Page|Help:Contents"
    assert transform_param_value(("info", 2)) == "info|2"
    assert transform_param_value({"tokens"}) == "tokens"


def test_collection_with_pipe_uses_unit_separator() -> None:
    value = transform_param_value(["a|b", "c"])
    assert value == "\x1fa|b\x1fc"
    assert value.split("\x1f")[1:] == ["a|b", "c"]


def test_unknown_values_pass_through_unchanged() -> None:
    marker = object()
    assert transform_params({"token": marker})["token"] is marker


def test_split_post_parameters_keeps_action_and_origin_in_url() -> None:
    url_params, body_params = split_post_parameters(
        {"action": "edit", "origin": "*", "title": "Sandbox", "token": "abc+\\"}
    )
    assert url_params == {"action": "edit", "origin": "*"}
    assert body_params == {"title": "Sandbox", "token": "abc+\\"}


def test_collection_booleans_and_none_render_like_scalars_in_a_list() -> None:
    assert transform_param_value([True, "a"]) == "true|a"
    assert transform_param_value([False, "a"]) == "false|a"
    assert transform_param_value([None, "b"]) == "|b"


def test_small_and_large_floats_render_without_padding() -> None:
    assert transform_params({"y": 1e-7}) == {"y": "1e-7"}
    assert transform_params({"y": 0.00001}) == {"y": "0.00001"}
    assert transform_params({"y": 1.5e22}) == {"y": "1.5e+22"}
    assert transform_params({"y": -2.5e-9}) == {"y": "-2.5e-9"}
