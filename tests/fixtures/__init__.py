"""Shared test fixtures package.

Provides resource builders and canned manifests for all test suites.
"""
