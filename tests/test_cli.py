import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tokenflow.adapters.chain.static_chain_adapter import StaticChainAdapter
from tokenflow.cli.main import main

from _factory import TOKEN, addr, make_transfer


class CliTests(unittest.TestCase):
    def test_writes_trace_and_summary(self) -> None:
        w, x = addr(0xA), addr(0xB)
        chain = StaticChainAdapter(transfers=[
            make_transfer("0xaa", w, x, value="150", decimals=2, symbol="TKN"),
        ])

        with tempfile.TemporaryDirectory() as tmp, \
                patch.dict(os.environ, {"ETHERSCAN_API_KEY": "test-key"}), \
                patch("tokenflow.cli.main.EtherscanChainAdapter", return_value=chain):
            code = main(["--wallet", w, "--token", TOKEN, "--max-hops", "1", "--out", tmp])

            self.assertEqual(code, 0)
            data = json.loads((Path(tmp) / "trace.json").read_text(encoding="utf-8"))
            summary = (Path(tmp) / "summary.md").read_text(encoding="utf-8")

        self.assertTrue(data["ok"])
        self.assertEqual(data["graph"]["edges"][0]["label"], "1.5 TKN")
        self.assertIn("Edges: **1**", summary)
        self.assertIn(x, summary)

    def test_invalid_wallet_exit_code(self) -> None:
        self.assertEqual(main(["--wallet", "0x123", "--token", TOKEN]), 2)

    def test_missing_api_key_exit_code(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(main(["--wallet", addr(1), "--token", TOKEN]), 2)


if __name__ == "__main__":
    unittest.main()
