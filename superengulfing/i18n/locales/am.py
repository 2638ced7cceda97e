"""Armenian locale strings (served under ``/am``)."""

STRINGS: dict[str, str] = {
    # ---------------------------------------------------------------------------
    # Navbar
    # ---------------------------------------------------------------------------
    "nav_home": "Գլխավոր",
    "nav_access": "Դասընթաց",
    "nav_book": "Գիրք",
    "nav_login": "Մուտք",
    "nav_dashboard": "Վահանակ",
    "nav_logout": "Ելք",
    "nav_switch_label": "English",
    "nav_switch_code": "EN",

    # ---------------------------------------------------------------------------
    # Page headings
    # ---------------------------------------------------------------------------
    "page_home": "Տիրապետիր լիկվիդության հավաքմանը",
    "page_access": "Ստացիր անվճար մուտք դասընթացին",
    "page_login": "Բարի վերադարձ",
    "page_book": "SuperEngulfing գիրքը",
    "page_liquidityscan": "LiquidityScan",
    "page_ls3monthoff": "LiquidityScan. 3 ամիս զեղչով",
    "page_pay_liquidityscan": "LiquidityScan վճարում",
    "page_thank_you": "Շնորհակալություն",
    "page_terms": "Պայմաններ և դրույթներ",
    "page_privacy": "Գաղտնիության քաղաքականություն",
    "page_disclaimer": "Պատասխանատվության սահմանափակում",
    "page_set_password": "Սահմանիր գաղտնաբառը",
    "page_dashboard": "Քո վահանակը",
    "page_academy": "Ակադեմիա",
    "page_course": "Դասընթաց",

    # ---------------------------------------------------------------------------
    # Login (login.html)
    # ---------------------------------------------------------------------------
    "login_subtitle": "Մուտք գործիր քո SuperEngulfing վահանակ։",
    "login_email": "Էլ. հասցե",
    "login_password": "Գաղտնաբառ",
    "login_submit": "Մուտք",
    "login_dev": "Dev մուտք",
    "login_error_required": "Մուտքագրիր էլ. հասցեն և գաղտնաբառը։",
    "login_error_invalid": "Սխալ էլ. հասցե կամ գաղտնաբառ։",
    "login_invalid_response": "Սերվերից անսպասելի պատասխան։ Փորձիր կրկին։",
    "login_server_error": "Սերվերի սխալ։ Փորձիր ավելի ուշ։",
    "login_dev_failed": "Dev մուտքը ձախողվեց։",
    "login_password_set": "Գաղտնաբառը սահմանված է։ Այժմ կարող ես մուտք գործել։",

    # ---------------------------------------------------------------------------
    # Thank-you page
    # ---------------------------------------------------------------------------
    "thank_you_subtitle": "Քո նյութերը պատրաստ են։",
    "thank_you_pdf": "Ներբեռնել PDF-ը",
    "thank_you_video": "Դիտել ողջույնի տեսանյութը",

    # ---------------------------------------------------------------------------
    # Email subscribe (home page)
    # ---------------------------------------------------------------------------
    "subscribe_placeholder": "Մուտքագրիր էլ. հասցեդ",
    "subscribe_submit": "Ուղարկել PDF-ը",
    "subscribe_success": "Ստուգիր փոստդ՝ էլ. հասցեն հաստատելու համար։",
    "subscribe_already": "Այս էլ. հասցեն արդեն բաժանորդագրված է։",
    "subscribe_pending": "Նախ հաստատիր էլ. հասցեդ։ Ստուգիր փոստդ։",
    "subscribe_failed": "Բաժանորդագրումը ձախողվեց։ Փորձիր կրկին։",
    "subscribe_connection_error": "Կապի սխալ։ Փորձիր կրկին։",
    "subscribe_error_required": "Մուտքագրիր վավեր էլ. հասցե։",

    # ---------------------------------------------------------------------------
    # Course access request
    # ---------------------------------------------------------------------------
    "access_hint": "Մուտքագրիր էլ. հասցեդ և բորսայի UID-ը՝ դասընթացի հասանելիություն խնդրելու համար։",
    "access_email": "Էլ. հասցե",
    "access_uid": "Բորսայի UID",
    "access_submit": "Խնդրել հասանելիություն",
    "access_success": "Հայտն ընդունված է։ Հաստատումից հետո նամակ կստանաս։",
    "access_error_required": "Մուտքագրիր վավեր էլ. հասցե և UID։",
    "access_error_exists": "Այս էլ. հասցեով հայտ արդեն կա։",
    "access_error_generic": "Ինչ-որ բան սխալ գնաց։ Փորձիր կրկին։",

    # ---------------------------------------------------------------------------
    # Set password
    # ---------------------------------------------------------------------------
    "set_password_subtitle": "Ընտրիր գաղտնաբառ վահանակի համար։",
    "set_password_label": "Նոր գաղտնաբառ",
    "set_password_confirm": "Հաստատիր գաղտնաբառը",
    "set_password_submit": "Սահմանել գաղտնաբառը",
    "set_password_missing_token": "Այս հղումը չունի token։",
    "set_password_request_access": "Խնդրել դասընթացի հասանելիություն",
    "set_password_link_used": "Այս հղումն արդեն օգտագործվել է։ Մուտք գործիր գաղտնաբառով։",
    "set_password_link_invalid": "Հղումն անվավեր է կամ ժամկետանց։",
    "set_password_go_to_login": "Անցնել մուտքի էջ",
    "set_password_min": "Գաղտնաբառը պետք է լինի առնվազն 6 նիշ։",
    "set_password_mismatch": "Գաղտնաբառերը չեն համընկնում։",
    "set_password_error": "Ինչ-որ բան սխալ գնաց։ Փորձիր կրկին։",
}
