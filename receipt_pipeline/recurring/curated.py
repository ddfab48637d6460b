"""
Curated process-wide sets used by recurring-expense scoring.

Entries are stored in normalized form (see normalize_store_name) so that a
direct set lookup is enough. Inject replacements through the analyzer
constructor rather than mutating these.
"""

KNOWN_RECURRING_MERCHANTS = frozenset({
    # Subscriptions
    'netflix', 'spotify', 'dstv', 'showmax', 'apple', 'google', 'microsoft',
    # Utilities and telecoms
    'eskom', 'city power', 'municipal', 'water board', 'telkom', 'vodacom', 'mtn', 'cell c',
    # Insurance
    'discovery', 'momentum', 'santam', 'outsurance', 'old mutual', 'sanlam',
    # Banking
    'fnb', 'standard bank', 'absa', 'nedbank', 'capitec',
    # Gym and fitness
    'virgin active', 'planet fitness', 'anytime fitness',
    # Transport and ride-hailing
    'uber', 'bolt', 'gautrain', 'metrobus',
})

RECURRING_CATEGORIES = frozenset({
    'utilities', 'telecommunications', 'insurance', 'banking_fees',
    'entertainment', 'healthcare', 'municipal_services', 'rent',
    # Built-in ExpenseCategory values with a billing cycle
    'electricity_water', 'municipal_rates_taxes', 'rent_bond',
    'airtime_data_internet', 'subscriptions',
})
