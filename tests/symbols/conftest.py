"""Shared fixtures for symbol extraction and reference tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from codelineage.symbols.models import ExtractionQuery, Symbol
from codelineage.symbols.service import SymbolService

CALCULATOR_JS = """\
// Example JavaScript file

class Calculator {
  constructor() {
    this.result = 0;
  }

  add(a, b) {
    return a + b;
  }

  subtract(a, b) {
    return a - b;
  }

  multiply(a, b) {
    return a * b;
  }
}

function processNumbers(nums) {
  const calc = new Calculator();
  return nums.reduce((acc, num) => calc.add(acc, num), 0);
}

const MAGIC_NUMBER = 42;

export { Calculator, processNumbers, MAGIC_NUMBER };
"""

USAGE_JS = """\
// Usage of Calculator

import { Calculator, processNumbers, MAGIC_NUMBER } from './example.js';

function main() {
  const calc = new Calculator();

  const sum = calc.add(10, 20);
  console.log('Sum:', sum);

  const diff = calc.subtract(100, MAGIC_NUMBER);
  console.log('Difference:', diff);

  const numbers = [1, 2, 3, 4, 5];
  const total = processNumbers(numbers);
  console.log('Total:', total);
}

// Another Calculator instance
const globalCalc = new Calculator();

main();
"""


@pytest.fixture
def extract() -> Callable[..., list[Symbol]]:
    """extract(source, language, query=None) through the shared service."""

    def _extract(
        source: str, language: str, query: ExtractionQuery | dict | None = None
    ) -> list[Symbol]:
        if isinstance(query, dict):
            query = ExtractionQuery.from_wire(query)
        return SymbolService.get().extract(source, language, query)

    return _extract


@pytest.fixture
def calculator_js() -> str:
    return CALCULATOR_JS


@pytest.fixture
def usage_js() -> str:
    return USAGE_JS
