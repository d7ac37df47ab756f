#!/usr/bin/env python3
"""Seed the database with demo tours, fan photos, playlist, clients and invoices."""
import sys
from datetime import date
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from stagepass import billing, create_app
from stagepass.extensions import db
from stagepass.models import (Client, Invoice, InvoiceLineItem, PhotoSubmission,
                              PlaylistTrack, Tour)

TOURS = [
    {"title": "Brand Nubian Live", "date": "2024-12-15", "venue": "Madison Square Garden", "city": "New York, NY"},
    {"title": "Outside LLMs Music & AI Buildathon", "date": "2025-07-27", "venue": "Edge & Node House of Web3", "city": "San Francisco, California"},
    {"title": "Acoustic Night", "date": "2024-09-22", "venue": "The Blue Note", "city": "Nashville, TN"},
    {"title": "Winter Tour 2023", "date": "2023-12-10", "venue": "Madison Square Garden", "city": "New York, NY"},
    {"title": "Indie Rock Festival", "date": "2023-11-05", "venue": "Red Rocks", "city": "Denver, CO"},
    {"title": "Album Release Party", "date": "2023-10-15", "venue": "The Troubadour", "city": "Los Angeles, CA"},
]

# (tour title, unsplash id, caption, author, email, status, featured, likes, quality, tags)
PHOTOS = [
    ("Winter Tour 2023", "1605810230434-7631ac76ec81", "Amazing energy from the crowd tonight!", "MusicFan92", "fan92@example.com", "approved", True, 24, "high", ["crowd", "energy"]),
    ("Winter Tour 2023", "1470813740244-df37b8c1edcb", "The lights were incredible during the last song", "ConcertLover", "concert@example.com", "approved", False, 18, "high", ["lights", "performance"]),
    ("Indie Rock Festival", "1500375592092-40eb2168fd21", "Best show ever! The acoustic set was perfect", "Fan4Life", "fan4life@example.com", "pending", False, 0, "medium", ["acoustic"]),
    ("Indie Rock Festival", "1472396961693-142e6e269027", "Caught this moment during the encore", "PhotoFan", "photo@example.com", "pending", False, 0, "high", ["encore", "performance"]),
    ("Album Release Party", "1533174072545-7a4b6ad7a6c3", "The band interaction with fans was incredible", "NewFan", "newfan@example.com", "approved", False, 12, "medium", ["interaction", "fans"]),
    ("Winter Tour 2023", "1493225457124-a3eb161ffa5f", "Sound quality was amazing tonight!", "AudioFile", "audio@example.com", "rejected", False, 0, "low", []),
]

PLAYLIST = [
    ("The Message", "Grandmaster Flash & The Furious Five", "The Message", "7:11", "The blueprint for conscious rap - showed us hip-hop could have a message"),
    ("Fight the Power", "Public Enemy", "Do the Right Thing Soundtrack", "4:45", "Revolutionary energy that inspired our approach to social commentary"),
    ("Me Myself and I", "De La Soul", "3 Feet High and Rising", "4:14", "Our Native Tongues family - creative freedom and positive vibes"),
    ("Can I Kick It?", "A Tribe Called Quest", "People's Instinctive Travels and the Paths of Rhythm", "4:27", "Jazz samples and smooth flows - major influence on our sound"),
    ("I Know You Got Soul", "Eric B. & Rakim", "Paid in Full", "5:05", "Rakim's intellectual approach to lyricism set the bar high"),
    ("The Choice Is Yours", "Black Sheep", "A Wolf in Sheep's Clothing", "4:17", "Native Tongues creativity with that raw New York energy"),
]

CLIENTS = [
    {"name": "Blue Note Jazz Club", "email": "booking@bluenote.com", "phone": "(212) 555-0123", "address": "131 W 3rd St", "city": "New York", "state": "NY", "zip_code": "10012", "type": "venue"},
    {"name": "Atlantic Records", "email": "payments@atlantic.com", "phone": "(212) 555-0456", "type": "label"},
    {"name": "Sarah Johnson", "email": "sarah.j.music@gmail.com", "phone": "(555) 123-4567", "type": "artist", "notes": "Collaboration on upcoming album"},
]

# (client name, status, issue, paid, method, reminders, [(description, qty, rate_cents, category)])
INVOICES = [
    ("Blue Note Jazz Club", "paid", "2024-01-15", "2024-02-10", "Wire Transfer", 0, [
        ("Live Performance - Evening Show", 1, 250000, "performance"),
        ("Sound Check & Rehearsal", 2, 20000, "performance"),
    ]),
    ("Atlantic Records", "sent", "2024-02-01", None, None, 1, [
        ("Studio Session - Lead Vocals", 8, 15000, "recording"),
        ("Songwriting Credit", 1, 500000, "collaboration"),
    ]),
    ("Sarah Johnson", "overdue", "2024-01-20", None, None, 2, [
        ("Music Production Services", 40, 10000, "recording"),
    ]),
]


def seed_demo():
    """Load demo content unless the tables already hold data."""
    app = create_app()

    with app.app_context():
        db.create_all()

        if Tour.query.count() == 0:
            tours = {}
            for data in TOURS:
                tour = Tour(
                    title=data["title"],
                    date=date.fromisoformat(data["date"]),
                    venue=data["venue"],
                    city=data["city"],
                )
                db.session.add(tour)
                tours[tour.title] = tour
            db.session.flush()
            print(f"Added {len(tours)} tours")

            for title, unsplash_id, caption, author, email, status, featured, likes, quality, tags in PHOTOS:
                db.session.add(PhotoSubmission(
                    tour_id=tours[title].tour_id,
                    file_path=f"demo/{unsplash_id}.jpg",
                    file_url=f"https://images.unsplash.com/photo-{unsplash_id}?w=800&h=600&fit=crop",
                    caption=caption,
                    author_name=author,
                    author_email=email,
                    status=status,
                    featured=featured,
                    likes=likes,
                    quality=quality,
                    tags=tags,
                ))
            print(f"Added {len(PHOTOS)} photo submissions")
        else:
            print("Tours already present. Skipping tours and photos...")

        if PlaylistTrack.query.count() == 0:
            for position, (title, artist, album, duration, reason) in enumerate(PLAYLIST):
                db.session.add(PlaylistTrack(
                    position=position, title=title, artist=artist,
                    album=album, duration=duration, reason=reason,
                ))
            print(f"Added {len(PLAYLIST)} playlist tracks")

        if Client.query.count() == 0:
            clients = {}
            for data in CLIENTS:
                client = Client(**data)
                db.session.add(client)
                clients[client.name] = client
            db.session.flush()

            for client_name, status, issued, paid, method, reminders, lines in INVOICES:
                issue_date = date.fromisoformat(issued)
                items = [
                    InvoiceLineItem(
                        description=description,
                        quantity=quantity,
                        rate_cents=rate_cents,
                        amount_cents=billing.line_amount_cents(quantity, rate_cents),
                        category=category,
                    )
                    for description, quantity, rate_cents, category in lines
                ]
                subtotal, tax, total = billing.compute_totals(
                    [item.amount_cents for item in items], 8.75
                )
                invoice = Invoice(
                    invoice_number=billing.next_invoice_number(issue_date.year),
                    client_id=clients[client_name].client_id,
                    status=status,
                    issue_date=issue_date,
                    due_date=billing.due_date_for(issue_date, "Net 30"),
                    payment_terms="Net 30",
                    tax_rate=8.75,
                    subtotal_cents=subtotal,
                    tax_cents=tax,
                    total_cents=total,
                    sent_date=issue_date,
                    paid_date=date.fromisoformat(paid) if paid else None,
                    payment_method=method,
                    reminders_sent=reminders,
                    items=items,
                )
                db.session.add(invoice)
                db.session.flush()
                print(f"  Added {invoice.invoice_number} for {client_name} (${total / 100:.2f})")
        else:
            print("Clients already present. Skipping clients and invoices...")

        db.session.commit()
        print("\nDemo data seeded successfully!")


if __name__ == "__main__":
    seed_demo()
