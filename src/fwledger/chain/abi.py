"""ABI of the deployed analysis ledger contract.

The contract keys records by analysis id: ``logAnalysis`` reverts with
"analysis already exists" for a known id, ``updateAnalysis`` reverts for an
unknown one, and ``analysisExists`` is a free view call.
"""

from __future__ import annotations

from typing import Any


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[tuple[str, str]] | None = None,
    mutability: str = "nonpayable",
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in outputs or []],
    }


def _event(name: str, inputs: list[tuple[str, str, bool]]) -> dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [{"name": n, "type": t, "indexed": i} for n, t, i in inputs],
    }


ANALYSIS_LEDGER_ABI: list[dict[str, Any]] = [
    _fn("analysisExists", [("analysisId", "string")], [("", "bool")], mutability="view"),
    _fn(
        "logAnalysis",
        [
            ("analysisId", "string"),
            ("filename", "string"),
            ("cryptoFunctions", "uint256"),
            ("totalFunctions", "uint256"),
        ],
        [("", "uint256")],
    ),
    _fn(
        "updateAnalysis",
        [("analysisId", "string"), ("cryptoFunctions", "uint256"), ("totalFunctions", "uint256")],
    ),
    _fn(
        "getAnalysis",
        [("analysisId", "string")],
        [
            ("submitter", "address"),
            ("filename", "string"),
            ("cryptoFunctions", "uint256"),
            ("totalFunctions", "uint256"),
            ("timestamp", "uint256"),
        ],
        mutability="view",
    ),
    _event(
        "AnalysisLogged",
        [
            ("user", "address", True),
            ("analysisId", "string", False),
            ("filename", "string", False),
            ("timestamp", "uint256", False),
        ],
    ),
    _event(
        "AnalysisUpdated",
        [
            ("user", "address", True),
            ("analysisId", "string", False),
            ("cryptoFunctions", "uint256", False),
            ("totalFunctions", "uint256", False),
        ],
    ),
]
