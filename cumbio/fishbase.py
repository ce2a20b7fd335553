"""
FishBase trait lookup
Fetches trophic level (FoodTroph) and its standard error (FoodSeTroph)
from the FishBase ecology table, or reads a previously exported copy.
"""
import logging
from typing import Iterable, Optional, Sequence

import httpx
import pandas as pd

from .config import FISHBASE_FIELDS, FISHBASE_URL, HTTP_TIMEOUT

logger = logging.getLogger(__name__)

TRAIT_COLUMNS = ["scientific_name", "FoodTroph", "FoodSeTroph"]


class TraitLookupError(RuntimeError):
    """The trait source could not be reached or answered garbage."""


def _to_trait_frame(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns={"Species": "scientific_name"})
    if "scientific_name" not in df.columns:
        raise TraitLookupError("trait table has no Species/scientific_name column")
    nameless = df["scientific_name"].isna()
    if nameless.any():
        logger.warning("Ignoring %d trait rows without a species name", int(nameless.sum()))
        df = df[~nameless].reset_index(drop=True)
    df["scientific_name"] = df["scientific_name"].astype(str).str.strip()

    for col in ("FoodTroph", "FoodSeTroph"):
        if col not in df.columns:
            df[col] = float("nan")
        raw = df[col]
        values = pd.to_numeric(raw, errors="coerce")
        # empty / None stays a missing value; anything else must parse
        given = raw.notna() & (raw.astype(str).str.strip() != "")
        bad = given & values.isna()
        if bad.any():
            rows = [f"record {i + 1} ({df.at[i, 'scientific_name']}: {raw.iloc[i]!r})"
                    for i in bad[bad].index[:5]]
            raise TraitLookupError(f"unparseable {col} at " + ", ".join(rows))
        df[col] = values
    extra = [c for c in df.columns if c not in TRAIT_COLUMNS]
    return df[TRAIT_COLUMNS + extra].reset_index(drop=True)


class FishBaseClient:
    """Bulk ecology lookup against a FishBase-style REST endpoint.

    ``GET {base_url}/ecology?species=A,B,...&fields=Species,FoodTroph,...``
    answers ``{"data": [{"Species": ..., "FoodTroph": ...}, ...]}``.
    One request per call, however many species are asked for.
    """

    def __init__(
        self,
        base_url: str = FISHBASE_URL,
        timeout: float = HTTP_TIMEOUT,
        fields: Sequence[str] = FISHBASE_FIELDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.fields = tuple(fields)
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout,
                            transport=self._transport)

    def ecology(self, species: Iterable[str]) -> pd.DataFrame:
        """Fetch the ecology rows for ``species`` in one request.

        Returns a frame with columns scientific_name, FoodTroph, FoodSeTroph
        (plus any extra requested fields). Species FishBase does not know
        are simply absent. Duplicate rows are returned as-is.
        """
        names = sorted({s.strip() for s in species if s and s.strip()})
        if not names:
            return pd.DataFrame(columns=TRAIT_COLUMNS)

        params = {"species": ",".join(names), "fields": ",".join(self.fields)}
        logger.info("Requesting ecology traits for %d species from %s",
                    len(names), self.base_url)
        try:
            with self._client() as client:
                response = client.get("/ecology", params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise TraitLookupError(f"FishBase lookup failed: {e}") from e
        except ValueError as e:
            raise TraitLookupError(f"FishBase returned invalid JSON: {e}") from e

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise TraitLookupError("unexpected FishBase response format (no 'data' list)")

        records = payload["data"]
        logger.info("Fetched %d ecology records", len(records))
        if not records:
            return pd.DataFrame(columns=TRAIT_COLUMNS)
        return _to_trait_frame(pd.DataFrame.from_records(records))


def load_traits_csv(path) -> pd.DataFrame:
    """Read an exported trait table (``Species`` or ``scientific_name`` column)."""
    df = pd.read_csv(path)
    logger.info("Loaded %d trait rows from %s", len(df), path)
    return _to_trait_frame(df)
