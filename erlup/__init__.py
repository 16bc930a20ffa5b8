"""
erlup - Erlang/OTP version manager.

Builds Erlang/OTP releases from git and runs the right one for each directory.
"""
