# Supabase Auth
# Registration, login and JWT validation go through Supabase's built-in
# authentication (auth.users). A database trigger creates the matching
# user_profiles row (see app/modules/users/models.py) on sign-up, copying
# full_name and phone from user_metadata.

"""
Supabase Auth calls used by AuthService:
- auth.sign_up() - register with email/password; user_metadata carries full_name, phone
- auth.sign_in_with_password() - authenticate and return a session
- auth.get_user(jwt) - resolve the current user from a bearer token
- auth.sign_out() - end the session
- auth.admin.delete_user() - remove the auth user on account deletion (service role)
"""
