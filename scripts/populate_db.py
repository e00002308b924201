import os
import sys
import django
import random
from decimal import Decimal
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pet_marketplace.settings')
django.setup()

from core.models import (
    User, Listing, Favorite, Rating, Report, Announcement, FAQItem
)
from core.services.listings import generate_unique_slug
from core.services.messaging import send_message, start_or_get_conversation

fake = Faker()

SPECIES_BREEDS = {
    'dogs': ['Labrador Retriever', 'German Shepherd', 'Beagle', 'Poodle', 'Husky'],
    'cats': ['Maine Coon', 'Siamese', 'Persian', 'British Shorthair', 'Bengal'],
    'birds': ['Budgerigar', 'Cockatiel', 'Lovebird', 'Canary'],
    'fish': ['Betta', 'Goldfish', 'Guppy'],
    'rabbits': ['Holland Lop', 'Netherland Dwarf', 'Lionhead'],
}


def create_users(num_users=20):
    print(f"Creating {num_users} users...")

    users = []
    for _ in range(num_users):
        email = fake.unique.email()
        user = User.objects.create_user(
            username=email,
            email=email,
            password='password123',
            display_name=fake.name(),
            country=fake.country()[:100],
            city=fake.city()[:100],
        )
        users.append(user)

    moderator_email = 'moderator@petmarket.test'
    moderator, _ = User.objects.get_or_create(
        email=moderator_email,
        defaults={'username': moderator_email, 'display_name': 'Moderator', 'role': User.ROLE_MODERATOR},
    )
    moderator.set_password('password123')
    moderator.save()

    print(f"Created {len(users)} users and moderator {moderator_email}.")
    return users, moderator


def create_listings(users):
    print("Creating listings...")
    listings = []

    statuses = [Listing.STATUS_APPROVED] * 6 + [Listing.STATUS_PENDING] * 3 + [Listing.STATUS_REJECTED]

    for user in users:
        # Each user lists 0-3 animals
        for _ in range(random.randint(0, 3)):
            species = random.choice(list(SPECIES_BREEDS))
            breed = random.choice(SPECIES_BREEDS[species])
            title = f"{random.choice(['Friendly', 'Playful', 'Calm', 'Young', 'Cuddly'])} {breed}"
            status = random.choice(statuses)

            listing = Listing.objects.create(
                seller=user,
                title=title,
                slug=generate_unique_slug(title),
                description=fake.paragraph(nb_sentences=4),
                species=species,
                breed=breed,
                age=random.randint(2, 120),
                gender=random.choice(['male', 'female', 'unknown']),
                price=Decimal(random.uniform(0.0, 1500.0)).quantize(Decimal('0.01')),
                currency='USD',
                country=user.country,
                city=user.city,
                status=status,
                rejection_reason=(
                    Listing.DEFAULT_REJECTION_REASON if status == Listing.STATUS_REJECTED else ''
                ),
                availability=random.choice(['available', 'available', 'reserved', 'adopted']),
                views=random.randint(0, 500),
            )
            listings.append(listing)

    print(f"Created {len(listings)} listings.")
    return listings


def create_favorites(users, listings):
    print("Creating favorites...")
    approved = [l for l in listings if l.status == Listing.STATUS_APPROVED]
    count = 0

    for user in users:
        candidates = [l for l in approved if l.seller_id != user.id]
        for listing in random.sample(candidates, min(len(candidates), random.randint(0, 4))):
            Favorite.objects.get_or_create(user=user, listing=listing)
            count += 1

    print(f"Created {count} favorites.")


def create_conversations(users, listings):
    print("Creating conversations...")
    approved = [l for l in listings if l.status == Listing.STATUS_APPROVED]
    count = 0

    for listing in random.sample(approved, min(len(approved), 10)):
        buyer = random.choice([u for u in users if u.id != listing.seller_id])
        conversation, _ = start_or_get_conversation(buyer, listing.seller_id, listing_id=listing.id)

        send_message(conversation.id, buyer, f"Hi! Is {listing.title} still available?")
        if random.random() < 0.7:
            send_message(conversation.id, listing.seller, fake.sentence())
        count += 1

    print(f"Created {count} conversations.")


def create_ratings(users):
    print("Creating ratings...")
    count = 0

    for rater in users:
        others = [u for u in users if u.id != rater.id]
        for rated in random.sample(others, min(len(others), random.randint(0, 3))):
            Rating.objects.update_or_create(
                rater=rater,
                rated=rated,
                defaults={'rating': random.randint(3, 5), 'review': fake.sentence()},
            )
            count += 1

    print(f"Created {count} ratings.")


def create_reports(users, listings):
    print("Creating reports...")
    for listing in random.sample(listings, min(len(listings), 3)):
        Report.objects.create(
            listing=listing,
            reporter=random.choice(users + [None]),
            reason=random.choice(['Suspected scam', 'Wrong species', 'Inappropriate photos']),
        )
    print("Created reports.")


def create_site_content(author):
    print("Creating announcements and FAQ...")

    Announcement.objects.create(
        title='Welcome to the Pet Marketplace',
        content='Find your new best friend. All listings are reviewed by our moderators before going live.',
        created_by=author,
    )

    faq = [
        ('How do I list an animal?', 'Create an account, open your dashboard and choose "New listing".', 'Listings'),
        ('Why is my listing pending?', 'Every new listing is reviewed by a moderator before it becomes public.', 'Listings'),
        ('How do I contact a seller?', 'Open the listing and press "Message seller".', 'Messaging'),
        ('How are ratings calculated?', 'A user rating is the average of all ratings they received.', 'General'),
    ]
    for order, (question, answer, category) in enumerate(faq):
        FAQItem.objects.create(question=question, answer=answer, category=category, order=order)

    print("Created site content.")


def main():
    print("Starting database population...")

    users, moderator = create_users(num_users=20)
    listings = create_listings(users)
    create_favorites(users, listings)
    create_conversations(users, listings)
    create_ratings(users)
    create_reports(users, listings)
    create_site_content(moderator)

    print("Database population completed successfully!")


if __name__ == '__main__':
    main()
