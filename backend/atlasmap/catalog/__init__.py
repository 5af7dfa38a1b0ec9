from atlasmap.catalog.parser import load_items, parse_item, parse_items

__all__ = ["load_items", "parse_item", "parse_items"]
