"""
Theurgy - Command implementations for kettlespell.

- spell: conf-request, deploy, kettle, whoami
"""
