"""
Default suggestion tables for the response enhancer.

Parameter suggestions help the caller find IDs it may be missing, operation
suggestions describe the usual next step, domain suggestions give context on
the BCP being used.
"""

PARAMETER_SUGGESTIONS = {
    "contact_id": [
        "Find contact: search_contacts with an email or name",
        "List recent contacts: recent_contacts with limit 10",
    ],
    "company_id": [
        "Find company: search_companies with a company name or domain",
        "List recent companies: recent_companies with limit 10",
    ],
    "deal_id": [
        "Find deal: search_deals with the deal name",
        "List recent deals: recent_deals with limit 10",
    ],
    "quote_id": [
        "Find quote: search_quotes with the quote title",
        "List recent quotes: recent_quotes with limit 10",
    ],
    "note_id": [
        "List notes for a contact: list_contact_notes with contact_id",
        "List notes for a company: list_company_notes with company_id",
    ],
    "owner_id": [
        "Find owner IDs with list_owners or search_owners by email",
    ],
    "metadata": [
        "Metadata uses custom properties, make sure they exist in HubSpot first",
        "List valid properties: list_properties with the matching object_type",
        "Create missing custom properties with create_property",
    ],
    "template_id": [
        "A template ID is required by the Marketing Email v3 API",
        "Templates must exist in HubSpot before use",
    ],
    "campaign_id": [
        "Campaign ID associates emails with a marketing campaign",
        "Campaign association is optional but keeps emails organized",
    ],
    "object_type": [
        "Common object types: contacts, companies, deals, tickets, notes, products",
        "Use list_properties or create_property to manage the fields of an object type",
        "Each object type has its own property groups and custom fields",
    ],
    "group_name": [
        "Property groups organize custom fields in HubSpot",
        "Find groups: list_property_groups with the object_type",
        "Common groups: contactinformation, companyinformation, dealinformation",
    ],
    "product_id": [
        "Product IDs are long numeric strings in HubSpot",
        "Find products: search_products by name or list_products with limit 10",
    ],
}

OPERATION_SUGGESTIONS = {
    "createContactNote": [
        "Workflow: search for the contact first, then create the note with the found contact_id",
    ],
    "createCompanyNote": [
        "Workflow: search for the company first, then create the note with the found company_id",
    ],
    "createDealNote": [
        "Workflow: search for the deal first, then create the note with the found deal_id",
    ],
    "update": [
        "Workflow: get the current record first to see which fields can be updated",
    ],
    "get": [
        "Workflow: without an ID, use the search or recent tools to find the record first",
    ],
    "listContactNotes": [
        "Related: use get_note with a note_id from the results for the full note",
    ],
    "listCompanyNotes": [
        "Related: use get_note with a note_id from the results for the full note",
    ],
    "listDealNotes": [
        "Related: use get_note with a note_id from the results for the full note",
    ],
}

DOMAIN_SUGGESTIONS = {
    "Notes": [
        "Notes are associated with contacts, companies or deals",
        "Search the other domains for the right IDs before creating notes",
    ],
    "Contacts": [
        "Contact search supports email addresses and names",
        "Create notes for contacts with create_contact_note",
    ],
    "Companies": [
        "Company search supports company names and domains",
        "Create notes for companies with create_company_note",
    ],
    "Deals": [
        "Deal search supports deal names and pipeline stages",
        "Create notes for deals with create_deal_note",
    ],
    "Quotes": [
        "Quotes are usually associated with deals and contacts",
        "Use add_quote_line_item to add products and services to a quote",
        "Search existing products with search_products before adding line items",
    ],
    "BlogPosts": [
        "Blog posts are always saved as drafts, use publish_blog_post to publish",
        "Use list_blog_posts to find content_group_id values",
        "Blog posts support slug customization and meta descriptions",
    ],
    "Emails": [
        "A template ID is required by the Marketing Email v3 API",
        "Use list_emails to find existing emails and templates",
    ],
    "Properties": [
        "Properties must belong to a valid property group, see list_property_groups",
        "Property names must be unique, lowercase and contain no spaces",
    ],
    "Products": [
        "Products are used in quotes, line items and e-commerce integrations",
        "Use search_products to find a product by name",
    ],
}
