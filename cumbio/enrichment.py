"""
Trophic-level enrichment of catch records
==========================================

  1. distinct species list  → one bulk trait lookup
  2. duplicate trait rows   → resolved (or refused) deterministically
  3. left join on scientific_name
  4. records without FoodTroph are dropped and reported, never hidden
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Callable, List, Mapping, Optional

import pandas as pd

logger = logging.getLogger(__name__)


class AmbiguousTraitError(ValueError):
    """Duplicate trait rows that cannot be resolved without a caller decision."""

    def __init__(self, species):
        self.species = sorted(species)
        super().__init__(
            "ambiguous duplicate trait records for: " + ", ".join(self.species)
            + " (pass overrides={name: FoodTroph} to resolve)"
        )


@dataclass
class EnrichmentReport:
    """What the join kept and what it had to drop."""

    n_records: int
    n_species: int
    n_species_with_tl: int
    species_without_tl: List[str] = field(default_factory=list)
    dropped_records: int = 0
    dropped_tonnes: float = 0.0
    resolved_duplicates: List[str] = field(default_factory=list)

    def to_json(self, indent=2) -> str:
        return json.dumps(asdict(self), indent=indent, ensure_ascii=False)


def distinct_species(catch: pd.DataFrame) -> List[str]:
    return sorted(catch["scientific_name"].dropna().unique().tolist())


def resolve_duplicate_traits(
    traits: pd.DataFrame,
    overrides: Optional[Mapping[str, float]] = None,
) -> pd.DataFrame:
    """Collapse trait rows to exactly one per scientific_name.

    For a species with several rows:
      - rows lacking FoodTroph are discarded if another row has it
      - rows agreeing on FoodTroph collapse to the first of them
      - no FoodTroph at all, or conflicting values → AmbiguousTraitError,
        unless ``overrides`` names the value to keep
    Single rows pass through unchanged, missing FoodTroph included.
    """
    overrides = dict(overrides or {})
    resolved = []
    ambiguous = []

    for name, rows in traits.groupby("scientific_name", sort=True):
        if name in overrides:
            tl = float(overrides[name])
            match = rows[rows["FoodTroph"] == tl]
            if len(match):
                row = match.iloc[[0]].copy()
            else:
                row = rows.iloc[[0]].copy()
                row["FoodTroph"] = tl
                row["FoodSeTroph"] = float("nan")
            resolved.append(row)
            continue

        if len(rows) == 1:
            resolved.append(rows)
            continue

        with_tl = rows[rows["FoodTroph"].notna()]
        if with_tl.empty or with_tl["FoodTroph"].nunique() > 1:
            ambiguous.append(name)
            continue
        logger.info("Resolved %d trait rows for %s (kept FoodTroph=%.2f)",
                    len(rows), name, with_tl["FoodTroph"].iloc[0])
        resolved.append(with_tl.iloc[[0]])

    if ambiguous:
        raise AmbiguousTraitError(ambiguous)
    if not resolved:
        return traits.iloc[0:0].copy()
    return pd.concat(resolved, ignore_index=True)


def enrich_catch(
    catch: pd.DataFrame,
    traits: pd.DataFrame,
    overrides: Optional[Mapping[str, float]] = None,
):
    """Join trophic level onto catch records.

    Returns ``(enriched, report)``; every row of ``enriched`` has a finite
    ``FoodTroph``.
    """
    names = distinct_species(catch)
    traits = traits[traits["scientific_name"].isin(names)]
    dup_names = sorted(
        traits.loc[traits["scientific_name"].duplicated(keep=False), "scientific_name"].unique()
    )
    resolved = resolve_duplicate_traits(traits, overrides)

    merged = catch.merge(
        resolved[["scientific_name", "FoodTroph", "FoodSeTroph"]],
        on="scientific_name",
        how="left",
        validate="many_to_one",
    )
    missing = merged["FoodTroph"].isna()
    species_without_tl = sorted(merged.loc[missing, "scientific_name"].unique().tolist())

    report = EnrichmentReport(
        n_records=len(catch),
        n_species=len(names),
        n_species_with_tl=len(names) - len(species_without_tl),
        species_without_tl=species_without_tl,
        dropped_records=int(missing.sum()),
        dropped_tonnes=float(merged.loc[missing, "tonnes"].sum()),
        resolved_duplicates=dup_names,
    )
    if report.dropped_records:
        logger.warning(
            "Dropping %d records (%.1f t) from %d species without trophic level: %s",
            report.dropped_records, report.dropped_tonnes,
            len(species_without_tl), ", ".join(species_without_tl),
        )

    enriched = merged.loc[~missing].reset_index(drop=True)
    return enriched, report


def lookup_and_enrich(
    catch: pd.DataFrame,
    fetch: Callable[[List[str]], pd.DataFrame],
    overrides: Optional[Mapping[str, float]] = None,
):
    """Deduplicate species, call ``fetch`` once with the list, then enrich."""
    names = distinct_species(catch)
    logger.info("Looking up traits for %d distinct species", len(names))
    traits = fetch(names)
    return enrich_catch(catch, traits, overrides)
