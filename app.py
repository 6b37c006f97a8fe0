# app.py
"""
Field Force Dashboard - Main Entry Point

Login page and landing page; the dashboards live under pages/.
"""

import streamlit as st
from fieldforce.auth import AuthManager
from fieldforce.access_control import AccessControl
from fieldforce.config import config
from fieldforce.db import check_db_connection
import logging

# Configure logging
logging.basicConfig(
    level=config.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Field Force"
APP_ICON = "🩺"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=f"{APP_NAME} Dashboard",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1f77b4;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .welcome-box {
        background: linear-gradient(135deg, #1f77b4 0%, #2196f3 100%);
        color: white;
        padding: 2rem;
        border-radius: 0.75rem;
        margin-bottom: 2rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.5rem;
        border-radius: 0.5rem;
        border-left: 4px solid #1f77b4;
        margin-bottom: 1rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

auth = AuthManager()

DASHBOARDS = [
    ("🩺 Return Index", "Doctors to visit this month, return index and compliance status per doctor."),
    ("📈 Sales Performance", "Monthly targets vs achievements, sales rate and recruitment rhythm per product."),
    ("📋 Action Plans", "Create action plans and approve or reject your team's requests."),
]

# ==================== HELPER FUNCTIONS ====================

def show_login_page():
    """Display the login page"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Visits, sales and action plans for the field team</p>', unsafe_allow_html=True)

    db_ok, db_error = check_db_connection()
    if not db_ok:
        st.error(f"⚠️ {db_error}")
        st.info("Please check your network connection or contact an administrator.")
        return

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("login_form", clear_on_submit=False):
            st.markdown("#### 🔐 Login")

            email = st.text_input("Email", placeholder="you@company.com", key="login_email")
            password = st.text_input("Password", type="password", key="login_password")

            submit = st.form_submit_button("🔑 Login", type="primary", use_container_width=True)

            if submit:
                if not email or not password:
                    st.warning("Please enter both email and password")
                else:
                    with st.spinner("Authenticating..."):
                        success, result = auth.authenticate(email, password)

                    if success:
                        auth.login(result)
                        st.success("✅ Login successful!")
                        st.rerun()
                    else:
                        st.error(result.get("error", "Authentication failed"))


def show_main_app():
    """Display the landing page after login"""
    role = auth.get_role()
    access = AccessControl(role, auth.get_user_id())

    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")

        level = access.get_access_level()
        if level == 'full':
            st.success("🔓 Full Access")
        elif level == 'team':
            st.info("👥 Team Access")
        else:
            st.warning("👤 Personal Access")

        st.caption(f"Role: {role.value if role else '-'}")
        st.markdown("---")

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f"""
    <div class="welcome-box">
        <h3>Welcome, {auth.get_user_display_name()}! 👋</h3>
        <div>Select a dashboard from the sidebar menu to get started.</div>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### 📊 Available Dashboards")
    for title, description in DASHBOARDS:
        st.markdown(f"""
        <div class="info-card">
            <strong>{title}</strong><br>
            <span style="color: #666;">{description}</span>
        </div>
        """, unsafe_allow_html=True)

    st.caption(f"{APP_NAME} v{APP_VERSION}")


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    if not auth.check_session():
        show_login_page()
    else:
        show_main_app()


if __name__ == "__main__":
    main()
