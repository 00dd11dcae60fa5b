"""
Backend package for the MediSecure anonymous symptom checker.

Modules:
- settings: Centralized configuration
- security: Prompt injection defense (sanitizer, intent classifier, delimiters)
- symptom_types: Request/response models (camelCase JSON contract)
- prompt_templates: English/Arabic prompt builders
- symptom_core: Pure analysis logic (testable without dependencies)
- symptom_runtime: LangChain/Streamlit adapters
- symptom_checker: Request handler facade
- audit_log: Health-data-free audit logging
- rate_limit: Anonymous rate limiting
- logging_config: Logging setup
"""
