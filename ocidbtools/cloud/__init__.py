# CUI // SP-CTI
"""OCI access layer.

Provides the explicitly constructed objects configuration providers use:
  - OCIAuthContext: parsed credentials + shared SDK clients
  - DatabaseToolsConnectionClient: create / get / delete / wait on connections
  - SecretsProvider: OCI Vault or local secret lookup by OCID
  - DbToolsProviderFactory: builds all of the above from dbtools_config.yaml
"""
