# Themis Django Project
