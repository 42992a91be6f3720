#!/usr/bin/env python3
"""List the tensors held in a weights-loader store."""

import argparse
import sys

from rich.table import Table

from .config import DEFAULT_NAMESPACE
from .convert import console
from .errors import WeightsError
from .store import FileWeightSource, RawWeightStore


def inspect(root, namespace=DEFAULT_NAMESPACE):
    store = RawWeightStore(FileWeightSource(root), namespace=namespace)
    names = store.names()
    if not names:
        console.print(f"[warning]No weights under {root}/{store.prefix}[/warning]")
        return 1

    table = Table(title=f"{root}/{store.prefix}")
    table.add_column("Name")
    table.add_column("Values", justify="right")
    for name in names:
        try:
            table.add_row(name, str(store.fetch(name).size))
        except WeightsError as e:
            table.add_row(name, f"[danger]{e}[/danger]")
    console.print(table)
    return 0


def main(argv=None):
    p = argparse.ArgumentParser(description="Inspect a weights-loader store")
    p.add_argument("root", help="Store root directory")
    p.add_argument("--namespace", default=DEFAULT_NAMESPACE)
    args = p.parse_args(argv)
    return inspect(args.root, args.namespace)


if __name__ == "__main__":
    sys.exit(main())
