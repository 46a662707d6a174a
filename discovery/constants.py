"""Shared constants for the discovery package."""

# Retail brands recognised by the store-name extractor, keyed by lower-case
# token so lookups are a single dict access.
KNOWN_BRANDS = {
    "woolworths": "Woolworths",
    "coles": "Coles",
    "aldi": "Aldi",
    "iga": "IGA",
    "costco": "Costco",
    "kmart": "Kmart",
    "target": "Target",
    "big w": "Big W",
    "bigw": "Big W",
    "myer": "Myer",
    "david jones": "David Jones",
    "jb hi-fi": "JB Hi-Fi",
    "jb hifi": "JB Hi-Fi",
    "harvey norman": "Harvey Norman",
    "officeworks": "Officeworks",
    "the good guys": "The Good Guys",
    "bunnings": "Bunnings",
    "chemist warehouse": "Chemist Warehouse",
    "priceline": "Priceline",
    "rebel": "Rebel",
    "amart": "Amart",
    "walmart": "Walmart",
    "kroger": "Kroger",
    "best buy": "Best Buy",
    "bestbuy": "Best Buy",
    "macys": "Macy's",
    "macy's": "Macy's",
    "instacart": "Instacart",
    "amazon": "Amazon",
    "ebay": "eBay",
    "gumtree": "Gumtree",
    "catch": "Catch",
    "nike": "Nike",
    "adidas": "Adidas",
    "puma": "Puma",
    "reebok": "Reebok",
    "new balance": "New Balance",
    "asics": "Asics",
    "skechers": "Skechers",
    "converse": "Converse",
    "vans": "Vans",
}

REPUTABLE_RETAILERS = {
    "woolworths", "coles", "aldi", "big w", "kmart", "target", "jb hi-fi",
    "officeworks", "harvey norman", "walmart", "kroger", "best buy", "costco",
}

MARKETPLACES = {"ebay", "amazon", "gumtree", "catch"}

# Sources that are placeholders rather than real stores.
GENERIC_SOURCES = {"Online Store", "Unknown", "Comparison Service"}

RETAILER_HINTS = {
    "grocery": ["supermarket", "woolworths", "coles", "aldi", "price"],
    "electronics": ["jb hi-fi", "harvey norman", "officeworks", "price"],
    "clothing": ["myer", "target", "kmart", "price"],
    "sporting": ["rebel", "decathlon", "price"],
    "general": ["store", "shop", "price"],
}

PRODUCT_SEARCH_SOURCES = {
    "grocery": ["kroger", "walmart", "target", "instacart"],
    "electronics": ["bestbuy", "amazon", "walmart", "target"],
    "clothing": ["amazon", "walmart", "target", "macys"],
    "general": ["amazon", "walmart", "target"],
}

# Google Places types queried for each category group.
PLACE_TYPES = {
    "grocery": ["grocery_or_supermarket", "supermarket", "store"],
    "electronics": ["electronics_store", "store"],
    "clothing": ["clothing_store", "shoe_store", "store", "shopping_mall"],
    "sporting": ["sporting_goods", "store"],
    "general": ["store", "shopping_mall", "department_store"],
}
