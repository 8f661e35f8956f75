# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "consulta"

JOURNALS: Final[str] = f"{ROOT}:journal"
