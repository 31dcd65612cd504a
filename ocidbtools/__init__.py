# CUI // SP-CTI
"""ocidbtools — JDBC connection properties from OCI Database Tools connections.

Subpackages:
  - cloud:          OCI auth context, Database Tools client, secrets, factory
  - configuration:  configuration providers keyed by an OCID (scheme "ocidbtools")
  - resilience:     error hierarchy and bounded polling
"""

__version__ = "0.1.0"
