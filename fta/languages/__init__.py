from __future__ import annotations

from .base import Grammar
from .java import JavaGrammar
from .javascript import JavaScriptGrammar
from .typescript import TsxGrammar, TypeScriptGrammar

__all__ = ["Grammar", "JavaGrammar", "JavaScriptGrammar", "TypeScriptGrammar", "TsxGrammar"]
