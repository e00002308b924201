"""
Bundled sample payloads served by MarketplaceAPI in degraded mode.

Only public read endpoints have mock data. Shapes match the live API's
``data`` field.
"""

MOCK_ANIMALS = [
    {
        'id': 1,
        'title': 'Friendly Labrador puppy',
        'slug': 'friendly-labrador-puppy',
        'description': 'Ten week old Labrador, vaccinated and house-trained.',
        'species': 'dogs',
        'breed': 'Labrador Retriever',
        'age': 3,
        'gender': 'male',
        'price': 450.0,
        'currency': 'USD',
        'country': 'United States',
        'city': 'Austin',
        'status': 'approved',
        'rejectionReason': None,
        'availability': 'available',
        'views': 120,
        'images': [],
        'imageItems': [],
        'coverImage': None,
        'sellerId': 1,
        'sellerName': 'Demo Seller',
        'sellerAvatar': 'https://api.dicebear.com/7.x/avataaars/svg?seed=Demo%20Seller',
        'favorites': 4,
        'createdAt': '2024-01-15T10:00:00Z',
        'updatedAt': '2024-01-15T10:00:00Z',
    },
    {
        'id': 2,
        'title': 'Calm Maine Coon',
        'slug': 'calm-maine-coon',
        'description': 'Two year old Maine Coon looking for a quiet home.',
        'species': 'cats',
        'breed': 'Maine Coon',
        'age': 24,
        'gender': 'female',
        'price': 0.0,
        'currency': 'USD',
        'country': 'United States',
        'city': 'Denver',
        'status': 'approved',
        'rejectionReason': None,
        'availability': 'available',
        'views': 87,
        'images': [],
        'imageItems': [],
        'coverImage': None,
        'sellerId': 2,
        'sellerName': 'Shelter Volunteer',
        'sellerAvatar': 'https://api.dicebear.com/7.x/avataaars/svg?seed=Shelter%20Volunteer',
        'favorites': 9,
        'createdAt': '2024-01-10T08:30:00Z',
        'updatedAt': '2024-01-10T08:30:00Z',
    },
]

MOCK_HOME_STATS = {
    'totalListings': len(MOCK_ANIMALS),
    'totalUsers': 2,
    'categoryCounts': {'dogs': 1, 'cats': 1},
}

MOCK_SITE_TRAFFIC = {
    'totalVisitors': 0,
    'onlineUsers': 0,
}

MOCK_ANNOUNCEMENTS = [
    {
        'id': 1,
        'title': 'Welcome to the Pet Marketplace',
        'content': 'The live service is unavailable right now; you are seeing sample data.',
        'imageUrl': '',
        'publishDate': '2024-01-01T00:00:00Z',
        'isVisible': True,
        'createdBy': None,
        'createdAt': '2024-01-01T00:00:00Z',
        'updatedAt': '2024-01-01T00:00:00Z',
    },
]

MOCK_FAQ = [
    {
        'id': 1,
        'question': 'Why is my listing pending?',
        'answer': 'Every new listing is reviewed by a moderator before it becomes public.',
        'category': 'Listings',
        'order': 0,
        'isVisible': True,
        'createdAt': '2024-01-01T00:00:00Z',
        'updatedAt': '2024-01-01T00:00:00Z',
    },
]


def paginate(items, page=1, limit=12):
    """Slice mock items the way the API paginates real ones."""
    page = max(int(page or 1), 1)
    limit = max(int(limit or 12), 1)
    start = (page - 1) * limit
    total = len(items)
    return items[start:start + limit], {
        'currentPage': page,
        'totalPages': -(-total // limit),
        'totalItems': total,
        'itemsPerPage': limit,
    }
