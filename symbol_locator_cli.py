#!/usr/bin/env python3
"""
Symbol Locator - Main Entry Point

Finds and caches PDB symbols for PE images and minidumps.
"""

import sys
import argparse
from pathlib import Path

# Add symbol_locator to path
sys.path.insert(0, str(Path(__file__).parent))


def main(argv=None):
    # Load .env before reading settings (so SYMBOL_LOCATOR_PATH etc. are set)
    from dotenv import load_dotenv
    load_dotenv()

    parser = argparse.ArgumentParser(
        description='Symbol Locator - Find, verify and cache PDB symbols',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve the PDB for an executable
  %(prog)s resolve game.exe

  # Resolve PDBs for every module in a crash dump
  %(prog)s dump crash.dmp --workers 8

  # Show how a symbol path is interpreted
  %(prog)s parse-path "cache*C:\\sym;srv*\\\\share\\sym*https://msdl.microsoft.com/download/symbols"

  # Print the GUID and age stored in a PDB
  %(prog)s identity ntdll.pdb
        """
    )

    parser.add_argument(
        'command',
        choices=['resolve', 'dump', 'parse-path', 'identity'],
        help='Command to execute'
    )

    parser.add_argument(
        'target',
        help='PE image, minidump, symbol path or PDB depending on the command'
    )

    parser.add_argument(
        '--symbol-path',
        help='Search path (default: SYMBOL_LOCATOR_PATH, _NT_SYMBOL_PATH or the Microsoft server)'
    )

    parser.add_argument(
        '--pdb',
        help='PDB to try before searching (resolve only)'
    )

    parser.add_argument(
        '--all-candidates',
        action='store_true',
        help='Try every candidate file name in directory tiers, not only the first'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=4,
        help='Parallel lookups for the dump command (default: 4)'
    )

    parser.add_argument(
        '--quiet',
        '-q',
        action='store_true',
        help='Only print results and warnings'
    )

    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Log every tier and mirror tried (also SYMBOL_LOCATOR_VERBOSE=1)'
    )

    args = parser.parse_args(argv)

    from symbol_locator import (
        SymbolResolver,
        SymbolSettings,
        PdbReader,
        parse_symbol_path,
        read_pe_debug_info,
        read_minidump_modules,
    )
    from symbol_locator.errors import SymbolLocatorError

    if args.command == 'parse-path':
        spec = parse_symbol_path(args.target)
        for index, tier in enumerate(spec.tiers, 1):
            print(f"{index}. {tier.kind.value}: {' -> '.join(tier.locations) or '(empty)'}")
            if tier.cache_dir:
                print(f"   cache: {tier.cache_dir}")
        if not spec.tiers:
            print("(no tiers)")
        return 0

    if args.command == 'identity':
        try:
            parsed = PdbReader().parse(args.target)
        except SymbolLocatorError as e:
            print(f"✗ {e}")
            return 1
        print(f"GUID: {parsed.guid}")
        print(f"Age:  {parsed.age}")
        return 0

    settings = SymbolSettings.from_env()
    if args.all_candidates:
        settings.try_all_candidates = True
    if args.verbose:
        settings.verbose = True
    if args.quiet:
        settings.verbose = False
    resolver = SymbolResolver(settings, symbol_path=args.symbol_path, quiet=args.quiet)

    try:
        if args.command == 'resolve':
            info = read_pe_debug_info(args.target)
            if not info:
                print(f"✗ No CodeView (RSDS) record in {args.target}")
                return 1
            if args.pdb:
                result = resolver.resolve_symbol_file(
                    info.expected_identity(), info.candidate_filenames(), declared_path=args.pdb)
            else:
                result = resolver.resolve_module(info)
            if not result:
                print(f"✗ Symbols unavailable for {args.target}")
                return 2
            print(result.file)
            return 0

        if args.command == 'dump':
            modules = read_minidump_modules(args.target)
            if not modules:
                print(f"✗ No modules with PDB info in {args.target}")
                return 1
            results = resolver.resolve_many(modules, max_workers=args.workers)
            found = 0
            for name, result in sorted(results.items()):
                if result:
                    found += 1
                    print(f"✓ {name}: {result.file}")
                else:
                    print(f"✗ {name}: unavailable")
            print(f"\n{found}/{len(results)} modules resolved")
            return 0 if found else 2
    except KeyboardInterrupt:
        print("\nCancelled")
        return 130
    except SymbolLocatorError as e:
        print(f"✗ {e}")
        return 1
    except OSError as e:
        print(f"✗ Cannot read {args.target}: {e.strerror or e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
