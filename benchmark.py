#!/usr/bin/env python3
"""Script CLI pour comparer la recherche BK-tree à un parcours linéaire."""
import argparse
import logging
import sys

from identity_index.evaluation import evaluate
from identity_index.utils import configure_logging


def main(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark de l'index approximatif")
    parser.add_argument("--dataset", default="data/identities.csv", help="Fichier CSV du corpus")
    parser.add_argument("--column", default=None, help="Colonne contenant les valeurs")
    parser.add_argument("--output", default="benchmark_report.csv", help="Fichier de sortie CSV")
    parser.add_argument("--threshold", type=int, default=None, help="Distance maximale tolérée")
    parser.add_argument("--metric", default=None, help="levenshtein ou osa")
    parser.add_argument("--verbose", action="store_true", help="Journalisation détaillée")
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    df = evaluate(args.dataset, threshold=args.threshold, metric=args.metric, column=args.column)
    df.to_csv(args.output, index=False)
    incomplete = int((~df["complete"]).sum())
    print(f"Rapport sauvegardé dans {args.output} ({len(df)} requêtes, {incomplete} divergences)")
    return 1 if incomplete else 0


if __name__ == "__main__":
    sys.exit(main())
