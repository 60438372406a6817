import json
import logging
import shutil
from pathlib import Path
from typing import Dict

from payrates.dataset.merge import normalize_entry, sort_dataset
from payrates.extract.schema import RATES_KEY, Dataset

logger = logging.getLogger(__name__)


def load_dataset(path: Path, *, validate: bool = False) -> Dict[str, dict]:
    """The persisted dataset, or {} when the file does not exist yet."""
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if validate:
        Dataset.model_validate(data)
    return data


def union_datasets(previous: Dict[str, dict], current: Dict[str, dict]) -> Dict[str, dict]:
    """
    Previous-run records first, this run's appended; each code shared by both is
    renormalized so later records win per effective date.
    """
    out: Dict[str, dict] = {code: {RATES_KEY: list(e.get(RATES_KEY, []))} for code, e in previous.items()}
    for code, entry in current.items():
        records = entry.get(RATES_KEY, [])
        if code not in out:
            out[code] = {RATES_KEY: list(records)}
            continue
        out[code] = {RATES_KEY: normalize_entry(out[code][RATES_KEY] + list(records))}
    return sort_dataset(out)


def save_dataset(dataset: Dict[str, dict], path: Path, *, backup: bool = True) -> None:
    # validate before touching the file
    Dataset.model_validate(dataset)

    path.parent.mkdir(parents=True, exist_ok=True)
    if backup and path.exists():
        bak = path.with_suffix(path.suffix + ".bak")
        shutil.copy2(path, bak)
        logger.debug("backed up %s to %s", path, bak)
    path.write_text(json.dumps(dataset, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    logger.info("wrote %d classifications to %s", len(dataset), path)
