"""Resolve free-form CSV header rows onto the canonical OTC columns."""

import csv
import logging
from dataclasses import dataclass, field

from ingestion.errors import MissingHeadersError

logger = logging.getLogger(__name__)

# Canonical key -> accepted spellings, French and English. Iteration order is
# the tie-break: a raw header matching several keys goes to the first one.
CANONICAL_HEADERS: dict[str, list[str]] = {
    "succursale": ["succursale", "branch", "branche", "site", "agence"],
    "operateur": ["operateur", "opérateur", "operator", "vendeur", "salesman"],
    "date cde": ["date cde", "date_cde", "date commande", "date de commande", "order date"],
    "num cde": [
        "num cde",
        "num_cde",
        "n° cde",
        "no cde",
        "num commande",
        "numero commande",
        "numéro commande",
        "order number",
        "order no",
    ],
    "po client": ["po client", "po_client", "customer po", "client po", "bon de commande client"],
    "reference": ["reference", "référence", "ref", "part number", "part no"],
    "designation": ["designation", "désignation", "description", "libelle", "libellé"],
    "qte cde": [
        "qte cde",
        "qté cde",
        "qte_cde",
        "quantite commandee",
        "quantité commandée",
        "qty ordered",
        "ordered qty",
    ],
    "qte livree": [
        "qte livree",
        "qté livrée",
        "qte_livree",
        "quantite livree",
        "quantité livrée",
        "qty delivered",
        "delivered qty",
    ],
    "solde": ["solde", "balance", "reliquat"],
    "date bl": [
        "date bl",
        "date_bl",
        "date livraison",
        "delivery note date",
        "delivery date",
    ],
    "num bl": [
        "num bl",
        "num_bl",
        "n° bl",
        "no bl",
        "numero bl",
        "delivery note",
        "delivery number",
    ],
    "status": ["status", "statut", "etat", "état"],
    "num client": [
        "num client",
        "num_client",
        "n° client",
        "no client",
        "numero client",
        "code client",
        "customer number",
        "customer no",
    ],
    "nom clients": ["nom clients", "nom client", "nom_clients", "client name", "customer name", "raison sociale"],
}

REQUIRED_HEADERS = ["succursale", "operateur", "num cde", "reference", "designation", "qte cde"]


def detect_delimiter(header_line: str) -> str:
    """Pick the delimiter from the header line: `;`, then tab, then `,`."""
    if ";" in header_line:
        return ";"
    if "\t" in header_line:
        return "\t"
    return ","


def split_line(line: str, delimiter: str) -> list[str]:
    """Split one CSV line, honouring quotes, and trim every value."""
    return [value.strip() for value in next(csv.reader([line], delimiter=delimiter), [])]


def header_matches(header: str, synonym: str) -> bool:
    """Loose match: either string contains the other. Blank never matches."""
    return bool(header) and (synonym in header or header in synonym)


@dataclass
class HeaderResolution:
    """Outcome of matching a header row against CANONICAL_HEADERS."""

    delimiter: str
    headers: list[str]
    columns: dict[str, int | None] = field(default_factory=dict)

    def raw_header(self, key: str) -> str | None:
        index = self.columns.get(key)
        return None if index is None else self.headers[index]

    @property
    def missing_required(self) -> list[str]:
        return [key for key in REQUIRED_HEADERS if self.columns.get(key) is None]


def match_headers(headers: list[str]) -> dict[str, int | None]:
    """Map each canonical key to the index of the raw header that matches it."""
    normalized = [h.strip().lower() for h in headers]
    claimed: set[int] = set()
    columns: dict[str, int | None] = {}

    for key, synonyms in CANONICAL_HEADERS.items():
        columns[key] = None
        for synonym in synonyms:
            match = next(
                (
                    i
                    for i, header in enumerate(normalized)
                    if i not in claimed and header_matches(header, synonym)
                ),
                None,
            )
            if match is not None:
                columns[key] = match
                claimed.add(match)
                break
    return columns


def resolve_headers(header_line: str) -> HeaderResolution:
    """Resolve a raw header line, rejecting it if a required column is missing.

    Raises:
        MissingHeadersError: with the missing canonical keys and every header
            found in the line.
    """
    header_line = header_line.lstrip("\ufeff")
    delimiter = detect_delimiter(header_line)
    headers = split_line(header_line, delimiter)
    resolution = HeaderResolution(delimiter, headers, match_headers(headers))

    missing = resolution.missing_required
    if missing:
        raise MissingHeadersError(missing, headers)

    for key, index in resolution.columns.items():
        if index is None:
            logger.debug("Optional column '%s' not found in file", key)
        else:
            logger.debug("Column '%s' <- '%s'", key, headers[index])
    return resolution
