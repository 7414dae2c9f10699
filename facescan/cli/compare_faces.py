"""CLI tool for comparing a probe embedding against a gallery of embeddings."""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from facescan.core.config import settings
from facescan.core.exceptions import FaceScanError
from facescan.core.logging import get_logger, setup_logging
from facescan.domain.value_objects.recognition import PositiveScanReturnType
from facescan.services.face_comparator import FaceScanComparator, MatchConfig

logger = get_logger(__name__)

EXIT_POSITIVE_MATCH = 0
EXIT_NO_POSITIVE_MATCH = 1
EXIT_INPUT_ERROR = 2


def load_embeddings(path: Path, ndim: int) -> np.ndarray:
    """
    Load embeddings from a .npy file.

    Args:
        path: Path to the .npy file
        ndim: Expected number of dimensions (1 for a probe, 2 for a gallery)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the array does not have the expected shape
    """
    if not path.exists():
        raise FileNotFoundError(f"Embedding file not found: {path}")
    data = np.load(path, allow_pickle=False)
    if ndim == 2 and data.ndim == 1:
        data = data.reshape(1, -1)
    if data.ndim != ndim:
        raise ValueError(f"Expected a {ndim}-D array in {path}, got shape {data.shape}")
    return data


def compare_faces(
    probe_path: Path,
    gallery_path: Path,
    config: MatchConfig,
) -> int:
    """
    Scan the gallery for the probe and log the report.

    Returns:
        Process exit status
    """
    try:
        probe = load_embeddings(probe_path, ndim=1)
        gallery = load_embeddings(gallery_path, ndim=2)
    except (OSError, ValueError) as e:
        logger.error("Failed to load embeddings", error=str(e))
        return EXIT_INPUT_ERROR

    comparator = FaceScanComparator.from_config(config)
    rows = list(gallery)
    try:
        report = comparator.scan(probe, rows)
    except FaceScanError as e:
        logger.error("Face comparison failed", error=str(e), **e.details)
        return EXIT_INPUT_ERROR

    # Candidates are reported by their row in the gallery file
    index_of = {id(row): i for i, row in enumerate(rows)}
    logger.info(
        "Face comparison completed",
        gallery_size=len(rows),
        result_type=report.result_type.value,
        max_confidence_score=round(report.max_confidence_score, 4)
    )
    for rank, match in enumerate(report.get_matches_by_similarity_score(), 1):
        logger.info(
            f"Match {rank}",
            gallery_index=index_of[id(match.face)],
            match_type=match.match_type.value,
            similarity_score=round(match.similarity_score, 4)
        )

    if report.has_positive_match:
        logger.info("Positive match", gallery_index=index_of[id(report.positive_match.face)])
        return EXIT_POSITIVE_MATCH
    return EXIT_NO_POSITIVE_MATCH


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Compare a probe face embedding against a gallery")
    parser.add_argument("probe", type=Path, help="Path to a .npy file holding one embedding")
    parser.add_argument("gallery", type=Path, help="Path to a .npy file holding one embedding per row")
    parser.add_argument(
        "--positive-threshold",
        type=float,
        default=settings.POSITIVE_MATCH_THRESHOLD,
        help="Minimum score for a positive match"
    )
    parser.add_argument(
        "--potential-threshold",
        type=float,
        default=settings.POTENTIAL_MATCH_THRESHOLD,
        help="Minimum score for a potential match"
    )
    parser.add_argument(
        "--strategy",
        choices=[t.value for t in PositiveScanReturnType],
        default=settings.POSITIVE_SCAN_RETURN_TYPE.value,
        help="Stop at the first positive match or keep scanning for the best one"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help="Root log level"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Write JSON log lines instead of the console format"
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, json_logs=args.json_logs or None)
    config = MatchConfig(
        positive_match_threshold=args.positive_threshold,
        potential_match_threshold=args.potential_threshold,
        positive_scan_return_type=PositiveScanReturnType(args.strategy),
    )
    return compare_faces(args.probe, args.gallery, config)


if __name__ == "__main__":
    sys.exit(main())
