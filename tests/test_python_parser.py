"""Tests for the ast-based Python structure parser."""

import pytest

from docdrift.core.errors import ParseError
from docdrift.core.models import SourceLanguage, TypeKind, Visibility
from docdrift.core.structural_parser import parse

SERVICE_MODULE = '''"""Billing service."""

import logging
import json as jsonlib
from abc import ABC, abstractmethod
from typing import Protocol
from .models import Invoice


class Notifier(Protocol):
    def send(self, message: str) -> None: ...


class BaseService(ABC):
    retries: int = 3

    @abstractmethod
    def run(self) -> None:
        """Run the service."""


class BillingService(BaseService, Notifier):
    timeout = 30

    def run(self) -> None:
        self._charge()

    def _charge(self):
        pass

    def __validate(self):
        pass

    def __repr__(self) -> str:
        return "BillingService"

    @staticmethod
    def currency() -> str:
        return "USD"

    async def refresh(self, force: bool = False) -> None:
        pass


class LoggingMixin:
    pass


def build_service(config: dict) -> BillingService:
    return BillingService()
'''


def test_parse__extracts_imports() -> None:
    summary = parse(SERVICE_MODULE, SourceLanguage.PYTHON)

    assert summary.language == SourceLanguage.PYTHON
    assert summary.namespace is None
    names = [(i.name, i.alias) for i in summary.imports]
    assert ("logging", None) in names
    assert ("json", "jsonlib") in names
    assert ("abc.ABC", None) in names
    assert ("typing.Protocol", None) in names
    assert (".models.Invoice", None) in names


def test_parse__maps_class_kinds() -> None:
    types = {t.name: t for t in parse(SERVICE_MODULE, "python").types}

    assert types["Notifier"].kind == TypeKind.INTERFACE
    assert types["LoggingMixin"].kind == TypeKind.TRAIT
    assert types["BillingService"].kind == TypeKind.CLASS


def test_parse__derives_extends_implements_and_abstract() -> None:
    types = {t.name: t for t in parse(SERVICE_MODULE, "python").types}

    assert types["BaseService"].modifiers.abstract is True
    assert types["BaseService"].extends is None
    assert types["BillingService"].extends == "BaseService"
    assert types["BillingService"].implements == ["Notifier"]
    assert types["BillingService"].modifiers.abstract is False


def test_parse__maps_underscore_names_to_visibility() -> None:
    service = next(t for t in parse(SERVICE_MODULE, "python").types if t.name == "BillingService")
    methods = {m.name: m for m in service.methods}

    assert methods["run"].visibility == Visibility.PUBLIC
    assert methods["_charge"].visibility == Visibility.PROTECTED
    assert methods["__validate"].visibility == Visibility.PRIVATE
    assert methods["__repr__"].visibility == Visibility.PUBLIC


def test_parse__signatures_carry_decorators_and_async() -> None:
    service = next(t for t in parse(SERVICE_MODULE, "python").types if t.name == "BillingService")
    methods = {m.name: m for m in service.methods}

    assert methods["run"].signature == "(self) -> None"
    assert methods["currency"].signature == "staticmethod () -> str"
    assert methods["refresh"].signature.startswith("async (self, force: bool")


def test_parse__collects_class_attributes_as_properties() -> None:
    types = {t.name: t for t in parse(SERVICE_MODULE, "python").types}

    assert [p.name for p in types["BaseService"].properties] == ["retries"]
    assert types["BaseService"].properties[0].signature == "int = 3"
    assert [p.name for p in types["BillingService"].properties] == ["timeout"]


def test_parse__docstring_becomes_docblock() -> None:
    base = next(t for t in parse(SERVICE_MODULE, "python").types if t.name == "BaseService")

    assert base.methods[0].docblock == "Run the service."


def test_parse__module_level_functions() -> None:
    summary = parse(SERVICE_MODULE, "python")

    assert [f.name for f in summary.functions] == ["build_service"]
    assert summary.functions[0].signature == "(config: dict) -> BillingService"


def test_parse__raises_parse_error_with_line() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse("x = 1\ndef broken(:\n    pass\n", SourceLanguage.PYTHON)

    assert exc_info.value.line == 2
