import hashlib
from typing import List

from demos_toolkit.tools.base import DemosTool, ToolResult, require_args

ALGORITHMS = {
    "sha256": hashlib.sha256,
    "sha3_512": hashlib.sha3_512,
}


def hash_data(data: str, algorithm: str) -> str:
    return ALGORITHMS[algorithm](data.encode("utf-8")).hexdigest()


def _normalize_hash(value: str) -> str:
    value = value.strip().lower()
    return value[2:] if value.startswith("0x") else value


class HashDataTool(DemosTool):
    """Hash text or verify it against an expected digest. Runs offline; no key needed."""

    name = "hash"
    usage = """
Usage: demostools hash <operation> <data> <algorithm> [hash]

Arguments:
  operation   hash or verify
  data        Data to hash/verify
  algorithm   Hash algorithm
  hash        Expected hash for verification (verify only)

Algorithms: sha256, sha3_512

Examples:
  demostools hash hash "Hello World" sha256
  demostools hash verify "Hello World" sha256 0xabc123...
"""

    def validate_args(self, args: List[str]) -> bool:
        if not require_args(args, 3, "hash", self.logger):
            return False
        operation, algorithm = args[0], args[2]
        if operation not in ("hash", "verify"):
            self.logger.error('❌ Invalid operation. Use "hash" or "verify"')
            return False
        if algorithm not in ALGORITHMS:
            self.logger.error('❌ Invalid algorithm. Use "sha256" or "sha3_512"')
            return False
        if operation == "verify" and len(args) < 4:
            self.logger.error("❌ Verify operation requires expected hash")
            return False
        return True

    def execute(self, args: List[str]) -> ToolResult:
        operation, data, algorithm = args[0], args[1], args[2]
        digest = hash_data(data, algorithm)

        if operation == "hash":
            self.logger.info("✅ Data hashed successfully")
            self.logger.info("")
            self.logger.info("🔐 Hash Result:")
            self.logger.info(f"   Data: {data}")
            self.logger.info(f"   Algorithm: {algorithm}")
            self.logger.info(f"   Hash: {digest}")
            return ToolResult(output={"operation": operation, "algorithm": algorithm, "hash": digest})

        expected = args[3]
        is_valid = _normalize_hash(expected) == digest
        self.logger.info("✅ Hash verification PASSED" if is_valid else "❌ Hash verification FAILED")
        self.logger.info("")
        self.logger.info(f"   Data: {data}")
        self.logger.info(f"   Algorithm: {algorithm}")
        self.logger.info(f"   Expected: {expected}")
        self.logger.info(f"   Computed: {digest}")
        self.logger.info(f"   Status: {'VALID' if is_valid else 'INVALID'}")
        return ToolResult(
            output={
                "operation": operation,
                "algorithm": algorithm,
                "expected_hash": expected,
                "computed_hash": digest,
                "is_valid": is_valid,
            }
        )
