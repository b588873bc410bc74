from typing import List

from demos_toolkit.config.migrations import apply_env_to_encrypted, initialize_config, prefer_file_over_env
from demos_toolkit.config.resolver import compute_provenance
from demos_toolkit.tools.base import DemosTool, ToolResult, require_args

OPERATIONS = ("show", "init", "apply-env", "use-config")


class ConfigTool(DemosTool):
    name = "config"
    usage = """
Usage: demostools config <operation>

Operations:
  show        Show current configuration and sources
  init        Create/update configuration file
  apply-env   Apply .env settings to encrypted config file (removes .env)
  use-config  Use config file over .env (backs up .env)

Examples:
  demostools config show
  demostools config init
  demostools config apply-env
  demostools config use-config
"""

    def validate_args(self, args: List[str]) -> bool:
        if not require_args(args, 1, "config", self.logger):
            return False
        if args[0] not in OPERATIONS:
            self.logger.error(f"❌ Invalid operation: {args[0]}")
            self.logger.error(f"Valid operations: {', '.join(OPERATIONS)}")
            return False
        return True

    def execute(self, args: List[str]) -> ToolResult:
        operation = args[0]
        if operation == "show":
            return self._show()
        if operation == "init":
            return self._init()
        if operation == "apply-env":
            return self._apply_env()
        return self._use_config()

    def _show(self) -> ToolResult:
        store = self.context.store
        self.logger.info("📋 Configuration sources (in order of priority):")
        self.logger.info("1. Command line: --config key=value")
        self.logger.info("2. Environment: .env file")
        self.logger.info(f"3. Config file: {store.path}")
        self.logger.info("")
        self.logger.info("📄 Current configuration:")

        provenance = compute_provenance(self.context.resolved)
        for record in provenance.values():
            self.logger.info(f"   {record.key}: {record.display_value} (from {record.source.value})")
        if self.context.resolved.credential_deferred:
            self.logger.info("   (PRIVATE_KEY is stored encrypted; it is decrypted only when a command needs it)")

        return ToolResult(output={record.key: record.source.value for record in provenance.values()})

    def _init(self) -> ToolResult:
        resolved = self.context.resolved
        settings = resolved.settings
        self.logger.info("🔧 Creating Demos configuration file...")
        self.logger.info("")
        self.logger.info(f"📁 Config location: {self.context.store.path}")
        self.logger.info("")
        self.logger.info("📋 Current settings:")
        has_key = settings.private_key or resolved.credential_deferred
        self.logger.info(f"   PRIVATE_KEY: {'***set***' if has_key else 'not set'}")
        self.logger.info(f"   DEMOS_RPC: {settings.demos_rpc or 'not set'}")
        self.logger.info(f"   REFERRAL_CODE: {settings.referral_code or 'not set'}")

        result = initialize_config(self.context.store, resolved)

        self.logger.info("")
        self.logger.info("📝 Next steps:")
        self.logger.info(f"1. Edit the config file: {result.config_path}")
        if result.kept_encrypted_credential:
            self.logger.info("2. PRIVATE_KEY stays encrypted; run 'demostools config apply-env' to replace it")
        else:
            self.logger.info("2. Add your wallet mnemonic to PRIVATE_KEY")
        self.logger.info("3. Verify settings: demostools config show")
        self.logger.info("")
        self.logger.info("💡 Config priority order:")
        self.logger.info("   Command line > Environment (.env) > Config file")
        return ToolResult(output={"operation": "init", "config_path": str(result.config_path)})

    def _apply_env(self) -> ToolResult:
        result = apply_env_to_encrypted(
            self.context.store,
            self.context.gate.password_provider,
            env_file=self.context.env_file,
            environ=self.context.environ,
        )
        self.logger.info("   Your private key is now encrypted and secure!")
        return ToolResult(output={"operation": "apply-env", "config_path": str(result.config_path)})

    def _use_config(self) -> ToolResult:
        result = prefer_file_over_env(self.context.store, env_file=self.context.env_file)
        if result.backup_path:
            self.logger.info(f"   {result.removed_env_file} has been backed up to {result.backup_path}")
        else:
            self.logger.info("   No .env file was present")
        self.logger.info('   Run "demostools config show" to verify settings')
        return ToolResult(output={"operation": "use-config", "backup_path": str(result.backup_path or "")})
