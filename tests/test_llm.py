"""Gemini helper tests that need no network."""

from __future__ import annotations

import pytest

from customai import llm


def test_model_names_are_prefixed() -> None:
    assert llm._model_name("gemini-2.0-flash") == "models/gemini-2.0-flash"
    assert llm._model_name("models/gemini-pro") == "models/gemini-pro"
    assert llm._model_name("tunedModels/mine") == "tunedModels/mine"


def test_calls_fail_fast_without_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm, "GEMINI_API_KEY", None)
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY is missing"):
        llm.call_llm("system", "user")
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY is missing"):
        llm.stream_llm("system", "user")


def test_module_exposes_only_text_helpers() -> None:
    public = {name for name in vars(llm) if name.endswith("_llm") or name.endswith("_llm_json")}
    assert public == {"call_llm", "stream_llm"}
