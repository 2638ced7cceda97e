"""English locale strings.

Keys are grouped by the page or component that renders them.
"""

STRINGS: dict[str, str] = {
    # ---------------------------------------------------------------------------
    # Navbar
    # ---------------------------------------------------------------------------
    "nav_home": "Home",
    "nav_access": "Course Access",
    "nav_book": "Book",
    "nav_login": "Login",
    "nav_dashboard": "Dashboard",
    "nav_logout": "Logout",
    "nav_switch_label": "Հայերեն",
    "nav_switch_code": "AM",

    # ---------------------------------------------------------------------------
    # Page headings
    # ---------------------------------------------------------------------------
    "page_home": "Master the Liquidity Sweep",
    "page_access": "Get Free Course Access",
    "page_login": "Welcome back",
    "page_book": "The SuperEngulfing Book",
    "page_liquidityscan": "LiquidityScan",
    "page_ls3monthoff": "LiquidityScan: 3 months off",
    "page_pay_liquidityscan": "LiquidityScan Checkout",
    "page_thank_you": "Thank you!",
    "page_terms": "Terms & Conditions",
    "page_privacy": "Privacy Policy",
    "page_disclaimer": "Disclaimer",
    "page_set_password": "Set your password",
    "page_dashboard": "Your Dashboard",
    "page_academy": "Academy",
    "page_course": "Course",

    # ---------------------------------------------------------------------------
    # Login (login.html)
    # ---------------------------------------------------------------------------
    "login_subtitle": "Log in to your SuperEngulfing dashboard.",
    "login_email": "Email",
    "login_password": "Password",
    "login_submit": "Log in",
    "login_dev": "Dev login",
    "login_error_required": "Please enter your email and password.",
    "login_error_invalid": "Invalid email or password.",
    "login_invalid_response": "Unexpected response from server. Please try again.",
    "login_server_error": "Server error. Please try again later.",
    "login_dev_failed": "Dev login failed.",
    "login_password_set": "Password set. You can log in now.",

    # ---------------------------------------------------------------------------
    # Thank-you page
    # ---------------------------------------------------------------------------
    "thank_you_subtitle": "Your resources are ready.",
    "thank_you_pdf": "Download the PDF",
    "thank_you_video": "Watch the welcome video",

    # ---------------------------------------------------------------------------
    # Email subscribe (home page)
    # ---------------------------------------------------------------------------
    "subscribe_placeholder": "Enter your email",
    "subscribe_submit": "Send me the PDF",
    "subscribe_success": "Check your inbox to confirm your email.",
    "subscribe_already": "This email is already subscribed.",
    "subscribe_pending": "Please confirm your email first. Check your inbox.",
    "subscribe_failed": "Subscription failed. Please try again.",
    "subscribe_connection_error": "Connection error. Please try again.",
    "subscribe_error_required": "Please enter a valid email.",

    # ---------------------------------------------------------------------------
    # Course access request
    # ---------------------------------------------------------------------------
    "access_hint": "Enter your email and exchange UID to request course access.",
    "access_email": "Email",
    "access_uid": "Exchange UID",
    "access_submit": "Request access",
    "access_success": "Request received. We will email you once it is approved.",
    "access_error_required": "Please enter a valid email and your UID.",
    "access_error_exists": "A request for this email already exists.",
    "access_error_generic": "Something went wrong. Please try again.",

    # ---------------------------------------------------------------------------
    # Set password
    # ---------------------------------------------------------------------------
    "set_password_subtitle": "Choose a password for your dashboard.",
    "set_password_label": "New password",
    "set_password_confirm": "Confirm password",
    "set_password_submit": "Set password",
    "set_password_missing_token": "This link is missing its token.",
    "set_password_request_access": "Request course access",
    "set_password_link_used": "This link was already used. Log in with your password.",
    "set_password_link_invalid": "This link is invalid or has expired.",
    "set_password_go_to_login": "Go to login",
    "set_password_min": "Password must be at least 6 characters.",
    "set_password_mismatch": "Passwords do not match.",
    "set_password_error": "Something went wrong. Please try again.",
}
