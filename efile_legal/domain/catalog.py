"""Static immigration category catalog used by the category step."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Subcategory:
    id: str
    name: str
    description: str
    requirements: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: str
    icon: str
    subcategories: List[Subcategory] = field(default_factory=list)


CATEGORIES: List[Category] = [
    Category(
        id='family',
        name='Family-Based Immigration',
        description='Immigration based on family relationships with U.S. citizens or permanent residents',
        icon='👨‍👩‍👧‍👦',
        subcategories=[
            Subcategory(
                id='immediate',
                name='Immediate Relatives',
                description='Spouses, parents, and unmarried children under 21 of U.S. citizens',
                requirements=[
                    'Must be a U.S. citizen',
                    'Must have a qualifying relationship',
                    'Must meet financial requirements',
                ],
            ),
            Subcategory(
                id='preference',
                name='Family Preference',
                description='Other family members of U.S. citizens and permanent residents',
                requirements=[
                    'Must be a U.S. citizen or permanent resident',
                    'Must have a qualifying relationship',
                    'Must meet financial requirements',
                ],
            ),
        ],
    ),
    Category(
        id='employment',
        name='Employment-Based Immigration',
        description='Immigration based on employment offers and skills',
        icon='💼',
        subcategories=[
            Subcategory(
                id='eb1',
                name='EB-1: Priority Workers',
                description='Individuals with extraordinary abilities, outstanding professors, and multinational executives',
                requirements=[
                    'Must demonstrate extraordinary ability',
                    'Must have international recognition',
                    'Must have significant contributions to the field',
                ],
            ),
            Subcategory(
                id='eb2',
                name='EB-2: Advanced Degree',
                description='Professionals with advanced degrees or exceptional ability',
                requirements=[
                    'Must have an advanced degree',
                    'Must have a job offer',
                    'Must have labor certification',
                ],
            ),
        ],
    ),
]


def find_category(category_id: str) -> Optional[Category]:
    for category in CATEGORIES:
        if category.id == category_id:
            return category
    return None


def find_subcategory(category_id: str, subcategory_id: str) -> Optional[Subcategory]:
    category = find_category(category_id)
    if category is None:
        return None
    for subcategory in category.subcategories:
        if subcategory.id == subcategory_id:
            return subcategory
    return None
