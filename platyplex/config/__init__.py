"""Configuration management package.

Submodules:
- config_loader: YAML configuration loading (ConfigLoader, PROJECT_ROOT, CONFIG_DIR)
- constants: Application constants (LEDGER_ENVIRONMENTS, exit codes, retry defaults)
- service: Configuration service singleton (ConfigService, get_config_service)

Note: Use direct imports from submodules:
    from platyplex.config.config_loader import ConfigLoader, PROJECT_ROOT
    from platyplex.config.service import get_config_service
"""
