#!/usr/bin/env python3
"""
Create the default front-office staff accounts.
Run with: python init_users.py
"""
from frontdesk import create_app
from frontdesk.extensions import db
from frontdesk.models import UserProfile

DEFAULT_USERS = [
    {
        'username': 'admin',
        'email': 'admin@frontdesk.local',
        'password': 'admin123',
        'full_name': 'Office Admin',
        'role': 'admin',
    },
    {
        'username': 'reception',
        'email': 'reception@frontdesk.local',
        'password': 'recep123',
        'full_name': 'Front Desk',
        'role': 'receptionist',
    },
    {
        'username': 'doctor',
        'email': 'doctor@frontdesk.local',
        'password': 'doctor123',
        'full_name': 'Treating Doctor',
        'role': 'doctor',
    },
    {
        'username': 'lab',
        'email': 'lab@frontdesk.local',
        'password': 'lab123',
        'full_name': 'Lab Technician',
        'role': 'lab',
    },
]


def create_users():
    """Create the default users that do not exist yet"""
    app = create_app()

    with app.app_context():
        print("=" * 60)
        print("Initializing Staff Users")
        print("=" * 60)

        created_count = 0
        for user_data in DEFAULT_USERS:
            username = user_data['username']
            if UserProfile.query.filter_by(username=username).first():
                print(f"  - User '{username}' already exists (skipping)")
                continue

            user = UserProfile(
                username=username,
                email=user_data['email'],
                full_name=user_data['full_name'],
                role=user_data['role'],
            )
            user.set_password(user_data['password'])
            db.session.add(user)
            created_count += 1
            print(f"  Created: {username} ({user_data['role']}) - Password: {user_data['password']}")

        db.session.commit()

        print("=" * 60)
        print(f"Created {created_count} new user(s)")
        print("IMPORTANT: Change passwords after first login!")


if __name__ == '__main__':
    create_users()
