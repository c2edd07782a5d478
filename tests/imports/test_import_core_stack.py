import importlib

def _imp(name): importlib.import_module(name)

def test_import_models():      _imp("renewport.models")
def test_import_constants():   _imp("renewport.constants")
def test_import_revenue():     _imp("renewport.revenue")
def test_import_stress():      _imp("renewport.stress")
def test_import_monte_carlo(): _imp("renewport.monte_carlo")
def test_import_valuation():   _imp("renewport.valuation")
def test_import_loader():      _imp("analytics.portfolio_loader")
def test_import_analytics():   _imp("analytics.portfolio_analytics")
