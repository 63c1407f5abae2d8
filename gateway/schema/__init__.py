"""Root GraphQL schema composed from per-domain fragments.

Each domain module contributes a ``Query`` class and, optionally, a
``Mutation`` class. The composer merges them with
``strawberry.tools.merge_types`` and refuses to build when two fragments
claim the same root field.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import strawberry
from strawberry.tools import merge_types
from strawberry.utils.str_converters import to_camel_case

from ..errors import Policy, policy_of
from .address import AddressMutation, AddressQuery
from .category import CategoryMutation, CategoryQuery
from .coupon import CouponMutation, CouponQuery
from .dashboard import DashboardQuery
from .order import OrderMutation, OrderQuery
from .product import ProductMutation, ProductQuery
from .review import ReviewMutation, ReviewQuery
from .user import UserMutation, UserQuery

class SchemaCompositionError(Exception):
    pass

@dataclass(frozen=True)
class SchemaFragment:
    name: str
    query: Optional[type] = None
    mutation: Optional[type] = None

def root_fields(cls: type) -> List[Tuple[str, object]]:
    """``(graphql_name, field)`` pairs declared on a Strawberry type."""
    return [
        (field.graphql_name or to_camel_case(field.python_name), field)
        for field in cls.__strawberry_definition__.fields
    ]

class SchemaComposer:
    def __init__(self):
        self.fragments: List[SchemaFragment] = []

    def register(self, fragment: SchemaFragment) -> "SchemaComposer":
        if any(existing.name == fragment.name for existing in self.fragments):
            raise SchemaCompositionError(f"Fragment '{fragment.name}' is already registered")
        self.fragments.append(fragment)
        return self

    def _merge(self, root: str, attr: str) -> Optional[type]:
        parts = [(f.name, getattr(f, attr)) for f in self.fragments if getattr(f, attr) is not None]
        if not parts:
            return None
        owners: Dict[str, str] = {}
        for fragment_name, cls in parts:
            for name, _ in root_fields(cls):
                if name in owners:
                    raise SchemaCompositionError(
                        f"{root}.{name} is defined by both '{owners[name]}' and '{fragment_name}'")
                owners[name] = fragment_name
        return merge_types(root, tuple(cls for _, cls in parts))

    def build(self) -> strawberry.Schema:
        query = self._merge("Query", "query")
        if query is None:
            raise SchemaCompositionError("At least one fragment must contribute a query")
        return strawberry.Schema(query=query, mutation=self._merge("Mutation", "mutation"))

    def policies(self) -> Dict[str, Optional[Policy]]:
        """Error policy of every root field, keyed ``Query.name`` / ``Mutation.name``."""
        result: Dict[str, Optional[Policy]] = {}
        for fragment in self.fragments:
            for root, cls in (("Query", fragment.query), ("Mutation", fragment.mutation)):
                if cls is None:
                    continue
                for name, field in root_fields(cls):
                    result[f"{root}.{name}"] = policy_of(field)
        return result

def compose(fragments: Iterable[SchemaFragment]) -> SchemaComposer:
    composer = SchemaComposer()
    for fragment in fragments:
        composer.register(fragment)
    return composer

FRAGMENTS = [
    SchemaFragment("dashboard", query=DashboardQuery),
    SchemaFragment("product", query=ProductQuery, mutation=ProductMutation),
    SchemaFragment("order", query=OrderQuery, mutation=OrderMutation),
    SchemaFragment("coupon", query=CouponQuery, mutation=CouponMutation),
    SchemaFragment("user", query=UserQuery, mutation=UserMutation),
    SchemaFragment("category", query=CategoryQuery, mutation=CategoryMutation),
    SchemaFragment("review", query=ReviewQuery, mutation=ReviewMutation),
    SchemaFragment("address", query=AddressQuery, mutation=AddressMutation),
]

composer = compose(FRAGMENTS)
schema = composer.build()
