# Ontology Models
from app.models.ontology import (
    Channel, DynamicPricing, ProductChoice
)

__all__ = [
    'Channel', 'DynamicPricing', 'ProductChoice'
]
