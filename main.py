#!/usr/bin/env python3
import sys
from pathlib import Path
import argparse
from typing import List

# Setup paths
project_root = Path(__file__).parent.absolute()
sys.path.insert(0, str(project_root))

from planogram_layout.data_processing import DataLoader, DataValidator, TabularProductCatalog
from planogram_layout.export import ExportHandler
from planogram_layout.layout import PlanogramEditor
from planogram_layout.models import Planogram, Product, RackType
from planogram_layout.persistence import InMemoryProductCatalog, JsonFilePlanogramRepository
from planogram_layout.utils.config import load_settings
from planogram_layout.utils.error_handler import PlanogramError
from planogram_layout.utils.logger import get_logger

def sample_products() -> List[Product]:
    """Small built-in catalog used when no catalog file is given"""
    return [
        Product(name="Cereal Box", width=200, height=300, depth=80, color="#F59E0B", category="breakfast"),
        Product(name="Oat Pack", width=150, height=250, depth=70, color="#10B981", category="breakfast"),
        Product(name="Juice Carton", width=90, height=240, depth=90, color="#EF4444", category="drinks"),
        Product(name="Water Bottle", width=70, height=330, depth=70, color="#3B82F6", category="drinks"),
        Product(name="Cracker Box", width=180, height=200, depth=60, color="#8B5CF6", category="snacks"),
        Product(name="Chips Bag", width=160, height=280, depth=90, color="#EC4899", category="snacks"),
    ]

def build_layout(args, logger) -> PlanogramEditor:
    settings = load_settings(args.settings, overrides={'pixels_per_mm': args.scale})
    editor = PlanogramEditor(Planogram(name=args.name, settings=settings))

    # Step 1: Catalog
    if args.catalog:
        catalog = TabularProductCatalog(args.catalog, loader=DataLoader(data_path="data"))
        products = catalog.list_products()
        if catalog.skipped_rows:
            print(f"\n⚠️  Skipped {len(catalog.skipped_rows)} catalog rows:")
            for row_number, reason in catalog.skipped_rows[:5]:
                print(f"  - row {row_number}: {reason}")
    else:
        products = InMemoryProductCatalog(sample_products()).list_products()
    logger.info(f"Catalog has {len(products)} products")

    validator = DataValidator()
    is_valid, issues = validator.validate_products(products)
    if not is_valid:
        print(f"\n⚠️  Product validation found {len(issues)} issues:")
        for issue in issues[:5]:
            print(f"  - {issue}")

    # Step 2: Rack
    result = editor.add_rack(RackType(args.rack_type), name=args.name, levels=args.levels,
                             width=args.width, height=args.height)
    if not result:
        raise PlanogramError(result.message)
    rack = editor.planogram.find_rack(result.item_id)

    # Step 3: Fill shelves bottom-up, first fit
    placed, rejected = 0, []
    for product in products:
        for shelf in rack.shelves:
            if editor.place_product(shelf.item_id, product):
                placed += 1
                break
        else:
            rejected.append(product.name)

    print(f"\nPlaced {placed} of {len(products)} products on {len(rack.shelves)} shelves")
    for name in rejected[:5]:
        print(f"  - no space for {name}")

    # Step 4: Optional distribution and rescale
    if args.distribute:
        for shelf in rack.shelves:
            outcome = editor.distribute_evenly(shelf.item_id)
            logger.info(f"{shelf.item_id}: {outcome.message}")

    if args.rescale:
        outcome = editor.rescale(args.rescale)
        print(f"\nRescale: {outcome.message}")
        for warning in outcome.warnings:
            print(f"  ⚠️  {warning}")

    return editor

def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Planogram Shelf Layout Engine',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                               # Built-in sample catalog
  python main.py --catalog products.csv --levels 5 --distribute
  python main.py --catalog products.xlsx --rescale 1.0 --validate
  python main.py --save-dir planograms --export layout_report.xlsx
        """
    )

    parser.add_argument('--catalog', '-c', help='Product catalog (.csv or .xlsx)')
    parser.add_argument('--settings', help='JSON settings file')
    parser.add_argument('--name', '-n', default='Demo Gondola', help='Planogram and rack name')
    parser.add_argument('--rack-type', choices=[t.value for t in RackType], default='gondola',
                        help='Rack type')
    parser.add_argument('--levels', '-l', type=int, default=4, help='Rack levels (1-8)')
    parser.add_argument('--width', type=float, default=1200, help='Rack width in mm')
    parser.add_argument('--height', type=float, default=1800, help='Rack height in mm')
    parser.add_argument('--scale', type=float, help='Pixels per mm for the initial layout')
    parser.add_argument('--distribute', '-d', action='store_true',
                        help='Distribute products evenly on every shelf')
    parser.add_argument('--rescale', type=float, help='Rescale the finished layout to this pixels per mm')
    parser.add_argument('--validate', '-v', action='store_true',
                        help='Validate the finished layout')
    parser.add_argument('--save-dir', help='Save the planogram as JSON in this directory')
    parser.add_argument('--export', '-e', help='Write a layout report (.csv or .xlsx) to output/')

    args = parser.parse_args()

    logger = get_logger()

    print("\n" + "="*60)
    print("PLANOGRAM SHELF LAYOUT ENGINE")
    print("="*60)

    try:
        editor = build_layout(args, logger)
        planogram = editor.snapshot()

        if args.validate:
            validator = DataValidator()
            validator.validate_planogram(planogram)
            print("\n" + validator.generate_validation_report())

        if args.save_dir:
            saved = JsonFilePlanogramRepository(args.save_dir).save(planogram)
            print(f"\nSaved planogram {saved.planogram_id} to {args.save_dir}")

        if args.export:
            exporter = ExportHandler()
            report_path = exporter.export_layout_report(planogram, args.export)
            json_path = exporter.export_to_json(planogram, f"{Path(args.export).stem}.json")
            print(f"\nFiles generated:")
            print(f"  📄 {report_path}")
            print(f"  📄 {json_path}")

        print("\n" + "="*60)
        print("LAYOUT COMPLETE")
        print("="*60)
        print(f"Racks: {len(planogram.racks)}")
        print(f"Shelves: {len(planogram.all_shelves)}")
        print(f"Products placed: {len(planogram.products)}")
        print(f"Scale: {planogram.settings.pixels_per_mm} px/mm")

    except PlanogramError as e:
        logger.error(f"Error building layout: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
