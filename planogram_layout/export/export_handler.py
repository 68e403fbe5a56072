import json
import pandas as pd
from pathlib import Path
from typing import Any, Dict, List
from datetime import datetime

from planogram_layout.layout.units import pixels_to_mm
from planogram_layout.models.planogram import Planogram
from planogram_layout.utils.logger import get_logger


REPORT_COLUMNS = [
    'item_id', 'product_id', 'product_name', 'category', 'shelf_id', 'rack_id', 'level',
    'shelf_type', 'x_mm', 'y_mm', 'width_mm', 'height_mm', 'depth_mm'
]

class ExportHandler:
    """Export planograms as JSON and as a tabular layout report"""

    def __init__(self, output_dir: str = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger()

    def export_to_json(self, planogram: Planogram, filename: str = "planogram.json") -> str:
        """Export planogram to JSON format"""
        export_data = planogram.to_dict()
        export_data['metadata'] = {
            'exported_at': datetime.now().isoformat(),
            'racks': len(planogram.racks),
            'shelves': len(planogram.all_shelves),
            'products': len(planogram.products)
        }

        filepath = self.output_dir / filename
        with open(filepath, 'w') as f:
            json.dump(export_data, f, indent=2)

        self.logger.info(f"Exported planogram to {filepath}")
        return str(filepath)

    def layout_rows(self, planogram: Planogram) -> List[Dict[str, Any]]:
        """One row per placed product, positions in mm from the canvas origin"""
        ppm = planogram.settings.pixels_per_mm
        rows = []
        for item in planogram.products:
            shelf, rack = planogram.find_shelf(item.shelf_id) if item.shelf_id else (None, None)
            rows.append({
                'item_id': item.item_id,
                'product_id': item.product.product_id,
                'product_name': item.product.name,
                'category': item.product.category,
                'shelf_id': item.shelf_id,
                'rack_id': rack.rack_id if rack is not None else item.rack_id,
                'level': shelf.level if shelf is not None else None,
                'shelf_type': shelf.shelf_type.value if shelf is not None else None,
                'x_mm': pixels_to_mm(item.x, ppm),
                'y_mm': pixels_to_mm(item.y, ppm),
                'width_mm': item.product.width,
                'height_mm': item.product.height,
                'depth_mm': item.product.depth
            })
        return rows

    def export_layout_report(self, planogram: Planogram, filename: str = "layout_report.csv") -> str:
        """Write the layout report as CSV or, for .xlsx names, as an Excel workbook"""
        df = pd.DataFrame(self.layout_rows(planogram), columns=REPORT_COLUMNS)
        filepath = self.output_dir / filename

        if filepath.suffix.lower() == '.xlsx':
            with pd.ExcelWriter(filepath, engine='openpyxl') as writer:
                df.to_excel(writer, sheet_name='Layout', index=False)
                self._summary_frame(planogram).to_excel(writer, sheet_name='Summary', index=False)
        else:
            df.to_csv(filepath, index=False)

        self.logger.info(f"Exported layout report ({len(df)} products) to {filepath}")
        return str(filepath)

    @staticmethod
    def _summary_frame(planogram: Planogram) -> pd.DataFrame:
        return pd.DataFrame({
            'Metric': ['Planogram', 'Racks', 'Shelves', 'Products', 'Pixels per mm'],
            'Value': [
                planogram.name,
                len(planogram.racks),
                len(planogram.all_shelves),
                len(planogram.products),
                planogram.settings.pixels_per_mm
            ]
        })
