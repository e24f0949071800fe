import streamlit as st
from api_client import PhotoSearchClient

# --- CONFIGURATION ---
PAGE_TITLE = "Event Photo Search"
PAGE_ICON = "📸"

client = PhotoSearchClient(base_url="http://localhost:8000")

st.set_page_config(
    page_title=PAGE_TITLE,
    page_icon=PAGE_ICON,
    layout="wide"
)

# --- URL PARAMETER HANDLING ---
query_params = st.query_params
default_event = query_params.get("event", "")

# --- SESSION STATE ---
if "last_results" not in st.session_state: st.session_state.last_results = None

# --- MAIN INTERFACE ---
st.title(f"{PAGE_ICON} {PAGE_TITLE}")
st.caption("Describe what you are looking for, or upload a photo of the person you want to find.")

with st.form("search_form"):
    event_id = st.text_input("Event ID", value=default_event)
    query = st.text_input("Description", placeholder="e.g., 'person in a blue shirt'")
    reference = st.file_uploader("Or upload a similar photo", type=["jpg", "jpeg", "png", "webp"])
    if reference is not None:
        st.image(reference, width=96)
    submitted = st.form_submit_button("Search with AI", type="primary")

# --- SEARCH LOGIC ---
if submitted:
    if not event_id:
        st.error("Enter an event ID")
    elif not query and reference is None:
        st.error("Type a description or upload a photo")
    else:
        st.query_params["event"] = event_id
        with st.spinner("🧠 Looking through the event photos..."):
            response = client.search(
                event_id=event_id,
                query=query,
                image_bytes=reference.getvalue() if reference is not None else None,
                image_mime=reference.type if reference is not None else "image/jpeg"
            )

        if response.get("error"):
            st.session_state.last_results = None
            st.error(response["message"])
        else:
            st.session_state.last_results = (event_id, response.get("mediaIds", []))

# --- RENDER RESULTS ---
if st.session_state.last_results is not None:
    result_event, media_ids = st.session_state.last_results
    st.divider()

    if not media_ids:
        st.info("No photo found for this search")
    else:
        st.subheader(f"{len(media_ids)} photo(s) found")
        catalog = client.event_photos(result_event)
        urls = {p["id"]: p["file_url"] for p in catalog.get("photos", [])}

        cols = st.columns(4)
        for idx, media_id in enumerate(media_ids):
            with cols[idx % 4]:
                if media_id in urls:
                    st.image(urls[media_id], use_container_width=True)
                st.caption(media_id)
